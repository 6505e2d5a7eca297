"""Weather alerting configuration.

Enums, constants, and configuration dataclasses for the alerting core.
"""

import enum
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from src.weather_alerts.exceptions import ConfigurationError


ENV_PREFIX = "WEATHER_ALERTS_"


class AlertType(enum.Enum):
    """Types of environmental alerts."""
    TEMPERATURE = "temperature"
    HUMIDITY = "humidity"
    PRESSURE = "pressure"
    WIND_SPEED = "wind_speed"
    AIR_QUALITY = "air_quality"
    UV_INDEX = "uv_index"
    VISIBILITY = "visibility"

    @property
    def label(self) -> str:
        return ALERT_TYPE_LABELS[self]

    @property
    def unit(self) -> str:
        return ALERT_TYPE_UNITS[self]


class AlertLevel(enum.IntEnum):
    """Alert severity tiers, strictly increasing."""
    LOW = 1
    MEDIUM = 2
    HIGH = 3
    CRITICAL = 4

    @property
    def label(self) -> str:
        return self.name.capitalize()


class ComparisonOperator(enum.Enum):
    """Condition comparison operators."""
    GT = ">"
    LT = "<"
    GTE = ">="
    LTE = "<="
    EQ = "="


class SubscriptionKind(enum.Enum):
    """Kinds of notification subscriptions."""
    DAILY = "daily"
    WEEKLY = "weekly"
    ALERTS_ONLY = "alerts_only"
    EXTREME_ONLY = "extreme_only"

    @property
    def is_scheduled(self) -> bool:
        """Whether the clock drives this kind (Daily/Weekly only)."""
        return self in (SubscriptionKind.DAILY, SubscriptionKind.WEEKLY)


class Frequency(enum.Enum):
    """Subscription cadence."""
    HOURLY = "hourly"
    EVERY_3_HOURS = "every_3_hours"
    EVERY_6_HOURS = "every_6_hours"
    DAILY = "daily"
    WEEKLY = "weekly"


ALERT_TYPE_LABELS: dict[AlertType, str] = {
    AlertType.TEMPERATURE: "Temperature",
    AlertType.HUMIDITY: "Humidity",
    AlertType.PRESSURE: "Pressure",
    AlertType.WIND_SPEED: "Wind Speed",
    AlertType.AIR_QUALITY: "Air Quality",
    AlertType.UV_INDEX: "UV Index",
    AlertType.VISIBILITY: "Visibility",
}

ALERT_TYPE_UNITS: dict[AlertType, str] = {
    AlertType.TEMPERATURE: "°C",
    AlertType.HUMIDITY: "%",
    AlertType.PRESSURE: "hPa",
    AlertType.WIND_SPEED: "km/h",
    AlertType.AIR_QUALITY: "",
    AlertType.UV_INDEX: "",
    AlertType.VISIBILITY: "km",
}

# Minimum interval between repeat alerts for the same key (seconds)
DEFAULT_COOLDOWN_SECONDS = 3600

# Webhook attachment colors by level
LEVEL_COLORS: dict[AlertLevel, str] = {
    AlertLevel.LOW: "#36a64f",      # green
    AlertLevel.MEDIUM: "#ffcc00",   # yellow
    AlertLevel.HIGH: "#ff9900",     # orange
    AlertLevel.CRITICAL: "#ff0000", # red
}

# Plain-text severity markers
LEVEL_MARKERS: dict[AlertLevel, str] = {
    AlertLevel.LOW: "🟢",
    AlertLevel.MEDIUM: "🟡",
    AlertLevel.HIGH: "🟠",
    AlertLevel.CRITICAL: "🔴",
}

# Qualitative clauses appended to alert descriptions past these values
AQI_UNHEALTHY_CUTOFF = 150
UV_VERY_HIGH_CUTOFF = 7


def _env(environ: Mapping[str, str], name: str) -> Optional[str]:
    value = environ.get(ENV_PREFIX + name, "").strip()
    return value or None


def _env_number(environ: Mapping[str, str], name: str, cast=float):
    raw = _env(environ, name)
    if raw is None:
        return None
    try:
        return cast(raw)
    except ValueError as exc:
        raise ConfigurationError(
            f"Invalid value for {name}: {raw!r}", field=name.lower()
        ) from exc


@dataclass
class SlackConfig:
    """Slack incoming-webhook delivery configuration."""
    webhook_url: str = ""
    timeout_seconds: float = 10.0

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "SlackConfig":
        environ = os.environ if environ is None else environ
        config = cls()
        config.webhook_url = _env(environ, "SLACK_WEBHOOK_URL") or config.webhook_url
        timeout = _env_number(environ, "SLACK_TIMEOUT_SECONDS")
        if timeout is not None:
            config.timeout_seconds = timeout
        return config


@dataclass
class TelegramConfig:
    """Telegram Bot API direct-chat delivery configuration."""
    bot_token: str = ""
    api_base_url: str = "https://api.telegram.org"
    parse_mode: str = ""
    timeout_seconds: float = 10.0

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "TelegramConfig":
        environ = os.environ if environ is None else environ
        config = cls()
        config.bot_token = _env(environ, "TELEGRAM_BOT_TOKEN") or config.bot_token
        config.api_base_url = _env(environ, "TELEGRAM_API_BASE_URL") or config.api_base_url
        timeout = _env_number(environ, "TELEGRAM_TIMEOUT_SECONDS")
        if timeout is not None:
            config.timeout_seconds = timeout
        return config


@dataclass
class OpenWeatherConfig:
    """OpenWeatherMap provider configuration."""
    api_key: str = ""
    base_url: str = "https://api.openweathermap.org"
    timeout_seconds: float = 10.0

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "OpenWeatherConfig":
        environ = os.environ if environ is None else environ
        config = cls()
        config.api_key = _env(environ, "OPENWEATHER_API_KEY") or config.api_key
        config.base_url = _env(environ, "OPENWEATHER_BASE_URL") or config.base_url
        timeout = _env_number(environ, "OPENWEATHER_TIMEOUT_SECONDS")
        if timeout is not None:
            config.timeout_seconds = timeout
        return config
