"""Notification delivery channels."""

from src.weather_alerts.channels.base import DeliveryChannel
from src.weather_alerts.channels.in_app import InAppChannel, InAppMessage
from src.weather_alerts.channels.slack import SlackChannel
from src.weather_alerts.channels.telegram import TelegramChannel

__all__ = [
    "DeliveryChannel",
    "InAppChannel",
    "InAppMessage",
    "SlackChannel",
    "TelegramChannel",
]
