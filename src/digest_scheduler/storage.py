"""Storage interface for the scheduler.

The scheduler only reads users, alert configurations, and subscriptions.
Persistence design belongs to the host application; ``InMemoryStorage`` is
the reference implementation used by tests and the standalone service.
"""

import logging
import threading
from abc import ABC, abstractmethod

from src.weather_alerts.models import AlertConfig, Subscription, User

logger = logging.getLogger(__name__)


class Storage(ABC):
    """Read-side storage contract consumed by the scheduler."""

    @abstractmethod
    def active_users_with_location(self) -> list[User]:
        """Active users that have a monitored location."""

    @abstractmethod
    def active_alert_configs_for(self, user_id: str) -> list[AlertConfig]:
        """Active alert configurations owned by a user."""

    @abstractmethod
    def active_subscriptions(self) -> list[Subscription]:
        """All active subscriptions."""


class InMemoryStorage(Storage):
    """Thread-safe in-memory storage."""

    def __init__(self) -> None:
        self._users: dict[str, User] = {}
        self._configs: dict[str, AlertConfig] = {}
        self._subscriptions: dict[str, Subscription] = {}
        self._lock = threading.Lock()

    # ── Mutation ─────────────────────────────────────────────────────

    def add_user(self, user: User) -> User:
        with self._lock:
            self._users[user.user_id] = user
        logger.debug("Stored user %s", user.user_id)
        return user

    def remove_user(self, user_id: str) -> bool:
        """Remove a user together with their configs and subscriptions."""
        with self._lock:
            if self._users.pop(user_id, None) is None:
                return False
            self._configs = {
                k: c for k, c in self._configs.items() if c.user_id != user_id
            }
            self._subscriptions = {
                k: s for k, s in self._subscriptions.items() if s.user_id != user_id
            }
        return True

    def add_alert_config(self, config: AlertConfig) -> AlertConfig:
        with self._lock:
            self._configs[config.config_id] = config
        return config

    def remove_alert_config(self, config_id: str) -> bool:
        with self._lock:
            return self._configs.pop(config_id, None) is not None

    def add_subscription(self, subscription: Subscription) -> Subscription:
        with self._lock:
            self._subscriptions[subscription.subscription_id] = subscription
        return subscription

    def remove_subscription(self, subscription_id: str) -> bool:
        with self._lock:
            return self._subscriptions.pop(subscription_id, None) is not None

    # ── Storage API ──────────────────────────────────────────────────

    def active_users_with_location(self) -> list[User]:
        with self._lock:
            return [u for u in self._users.values() if u.active and u.has_location]

    def active_alert_configs_for(self, user_id: str) -> list[AlertConfig]:
        with self._lock:
            return [
                c for c in self._configs.values()
                if c.user_id == user_id and c.active
            ]

    def active_subscriptions(self) -> list[Subscription]:
        with self._lock:
            return [s for s in self._subscriptions.values() if s.active]
