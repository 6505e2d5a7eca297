"""In-app notification channel.

Stores rendered messages in memory for retrieval by the UI.
"""

import logging
import threading
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from src.weather_alerts.channels.base import DeliveryChannel
from src.weather_alerts.clock import resolve_timezone
from src.weather_alerts.config import SubscriptionKind
from src.weather_alerts.formatter import format_alert_text, format_digest_text
from src.weather_alerts.models import Alert, MetricSample, User, _new_id, _utc_now

logger = logging.getLogger(__name__)


@dataclass
class InAppMessage:
    """A stored in-app message."""
    user_id: str
    text: str
    kind: str
    alert_id: Optional[str] = None
    message_id: str = field(default_factory=_new_id)
    created_at: datetime = field(default_factory=_utc_now)


class InAppChannel(DeliveryChannel):
    """In-app delivery.

    Keeps the most recent ``max_per_user`` messages per user.
    """

    name = "in_app"

    def __init__(self, max_per_user: int = 100) -> None:
        self.max_per_user = max_per_user
        self._messages: dict[str, list[InAppMessage]] = defaultdict(list)
        self._lock = threading.Lock()

    def _store(self, message: InAppMessage) -> None:
        with self._lock:
            user_messages = self._messages[message.user_id]
            user_messages.append(message)
            if len(user_messages) > self.max_per_user:
                self._messages[message.user_id] = user_messages[-self.max_per_user:]
        logger.debug("In-app %s stored for user %s", message.kind, message.user_id)

    def send_alert(self, alert: Alert, user: User) -> None:
        text = format_alert_text(alert, resolve_timezone(user.timezone))
        self._store(InAppMessage(
            user_id=user.user_id, text=text, kind="alert", alert_id=alert.alert_id,
        ))

    def send_digest(
        self,
        sample: MetricSample,
        user: User,
        kind: SubscriptionKind = SubscriptionKind.DAILY,
    ) -> None:
        text = format_digest_text(sample, user, kind, resolve_timezone(user.timezone))
        self._store(InAppMessage(user_id=user.user_id, text=text, kind=kind.value))

    def get_all(self, user_id: str) -> list[InAppMessage]:
        with self._lock:
            return list(self._messages.get(user_id, []))
