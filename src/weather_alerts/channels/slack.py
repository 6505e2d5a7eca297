"""Slack notification channel.

Delivers color-coded attachments via a Slack incoming webhook.
"""

import logging
import re
from typing import Any, Optional

import httpx

from src.weather_alerts.channels.base import DeliveryChannel
from src.weather_alerts.config import SlackConfig, SubscriptionKind
from src.weather_alerts.exceptions import DeliveryError
from src.weather_alerts.formatter import format_alert_payload, format_digest_payload
from src.weather_alerts.models import Alert, MetricSample, User

logger = logging.getLogger(__name__)

SLACK_WEBHOOK_REGEX = re.compile(
    r"^https://hooks\.slack\.com/services/T[A-Z0-9]+/B[A-Z0-9]+/[a-zA-Z0-9]+$"
)


class SlackChannel(DeliveryChannel):
    """Slack delivery via incoming webhooks."""

    name = "slack"

    def __init__(
        self,
        config: Optional[SlackConfig] = None,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.config = config or SlackConfig()
        self._client = client or httpx.Client(timeout=self.config.timeout_seconds)

    @property
    def is_configured(self) -> bool:
        return bool(self.config.webhook_url)

    def send_alert(self, alert: Alert, user: User) -> None:
        self._post(format_alert_payload(alert, user))

    def send_digest(
        self,
        sample: MetricSample,
        user: User,
        kind: SubscriptionKind = SubscriptionKind.DAILY,
    ) -> None:
        self._post(format_digest_payload(sample, user, kind))

    def _post(self, payload: dict[str, Any]) -> None:
        if not self.is_configured:
            logger.debug("Slack webhook not configured, skipping")
            return

        try:
            response = self._client.post(self.config.webhook_url, json=payload)
        except httpx.HTTPError as exc:
            raise DeliveryError(self.name, str(exc)) from exc

        if not response.is_success:
            raise DeliveryError(
                self.name,
                f"webhook returned status {response.status_code}",
                status_code=response.status_code,
            )
        logger.info("Slack notification sent")

    @staticmethod
    def validate_recipient(recipient: str) -> bool:
        """Whether ``recipient`` looks like a Slack incoming-webhook URL."""
        return bool(SLACK_WEBHOOK_REGEX.match(recipient))

    def close(self) -> None:
        self._client.close()
