"""Cooldown tracking.

Per-key last-triggered timestamps enforcing a minimum re-trigger interval.
State is in-memory and instance-scoped; it does not survive restarts.
"""

import logging
import threading
from datetime import datetime, timedelta
from typing import Callable, Optional

from src.weather_alerts.config import DEFAULT_COOLDOWN_SECONDS
from src.weather_alerts.models import _utc_now

logger = logging.getLogger(__name__)


def alert_key(user_id: str, alert_type, location: str) -> str:
    """Build the cooldown key for a user's alert at a location."""
    type_value = getattr(alert_type, "value", alert_type)
    return f"{user_id}:{type_value}:{location}"


class CooldownTracker:
    """Thread-safe keyed cooldown store.

    Each key has its own lock so the check-then-mark sequence in
    ``try_trigger`` is atomic per key without serializing unrelated keys.
    """

    def __init__(
        self,
        cooldown_seconds: float = DEFAULT_COOLDOWN_SECONDS,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.cooldown = timedelta(seconds=cooldown_seconds)
        self._clock = clock or _utc_now
        self._last_triggered: dict[str, datetime] = {}
        self._key_locks: dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def _lock_for(self, key: str) -> threading.Lock:
        with self._registry_lock:
            lock = self._key_locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._key_locks[key] = lock
            return lock

    def _elapsed_ok(self, key: str, now: datetime) -> bool:
        last = self._last_triggered.get(key)
        if last is None:
            return True
        return now - last >= self.cooldown

    def can_trigger(self, key: str) -> bool:
        """True if the key has no record or its cooldown has elapsed."""
        with self._lock_for(key):
            return self._elapsed_ok(key, self._clock())

    def mark_triggered(self, key: str) -> None:
        """Record that the key triggered now."""
        with self._lock_for(key):
            self._last_triggered[key] = self._clock()

    def try_trigger(self, key: str) -> bool:
        """Atomically check the cooldown and mark the key if it passes.

        Returns:
            True if the caller may trigger (and the key is now marked).
        """
        with self._lock_for(key):
            now = self._clock()
            if not self._elapsed_ok(key, now):
                logger.debug("Cooldown active for %s", key)
                return False
            self._last_triggered[key] = now
            return True

    def last_triggered(self, key: str) -> Optional[datetime]:
        with self._lock_for(key):
            return self._last_triggered.get(key)

    def reset(self, key: str) -> None:
        """Forget a key's last trigger."""
        with self._lock_for(key):
            self._last_triggered.pop(key, None)

    def clear(self) -> None:
        with self._registry_lock:
            self._last_triggered.clear()
            self._key_locks.clear()

    def __len__(self) -> int:
        return len(self._last_triggered)
