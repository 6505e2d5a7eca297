"""Telegram direct-chat channel.

Sends plain-text messages through the Bot API ``sendMessage`` method. For
direct messages the chat ID is the user's ID unless one is set explicitly;
delivery fails if the user never started a chat with the bot or blocked it.
"""

import logging
from typing import Optional

import httpx

from src.weather_alerts.channels.base import DeliveryChannel
from src.weather_alerts.clock import resolve_timezone
from src.weather_alerts.config import SubscriptionKind, TelegramConfig
from src.weather_alerts.exceptions import DeliveryError
from src.weather_alerts.formatter import format_alert_text, format_digest_text
from src.weather_alerts.models import Alert, MetricSample, User

logger = logging.getLogger(__name__)


class TelegramChannel(DeliveryChannel):
    """Direct chat delivery via the Telegram Bot API."""

    name = "telegram"

    def __init__(
        self,
        config: Optional[TelegramConfig] = None,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.config = config or TelegramConfig()
        self._client = client or httpx.Client(timeout=self.config.timeout_seconds)

    @property
    def is_configured(self) -> bool:
        return bool(self.config.bot_token)

    @property
    def _send_url(self) -> str:
        return f"{self.config.api_base_url.rstrip('/')}/bot{self.config.bot_token}/sendMessage"

    def send_alert(self, alert: Alert, user: User) -> None:
        text = format_alert_text(alert, resolve_timezone(user.timezone))
        self._send(user, text)

    def send_digest(
        self,
        sample: MetricSample,
        user: User,
        kind: SubscriptionKind = SubscriptionKind.DAILY,
    ) -> None:
        text = format_digest_text(sample, user, kind, resolve_timezone(user.timezone))
        self._send(user, text)

    def _send(self, user: User, text: str) -> None:
        if not self.is_configured:
            logger.debug("Telegram bot not configured, skipping")
            return

        chat_id = user.get_chat_id()
        body = {"chat_id": chat_id, "text": text}
        if self.config.parse_mode:
            body["parse_mode"] = self.config.parse_mode

        try:
            response = self._client.post(self._send_url, json=body)
        except httpx.HTTPError as exc:
            raise DeliveryError(self.name, str(exc)) from exc

        if not response.is_success:
            description = ""
            try:
                description = response.json().get("description", "")
            except ValueError:
                pass
            logger.error(
                "Telegram send to chat %s failed (user may have blocked the bot): %s",
                chat_id, description or response.status_code,
            )
            raise DeliveryError(
                self.name,
                f"sendMessage returned status {response.status_code} {description}".strip(),
                status_code=response.status_code,
            )
        logger.info("Telegram message sent to chat %s", chat_id)

    def close(self) -> None:
        self._client.close()
