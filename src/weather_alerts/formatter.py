"""Message formatting.

Side-effect-free rendering of alerts and digests into plain text for direct
chat delivery and into color-coded attachment payloads for webhook channels.
"""

from datetime import datetime, timezone, tzinfo
from typing import Any, Optional

from src.weather_alerts.config import LEVEL_COLORS, LEVEL_MARKERS, SubscriptionKind
from src.weather_alerts.models import Alert, MetricSample, User
from src.weather_alerts.severity import describe_air_quality, describe_uv_index

_UNKNOWN_LOCATION = "Unknown Location"


def _local_time(instant: datetime, tz: Optional[tzinfo]) -> str:
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(tz or timezone.utc).strftime("%H:%M %Z")


def _fmt(value: Optional[float], spec: str, suffix: str = "") -> str:
    if value is None:
        return "n/a"
    return f"{value:{spec}}{suffix}"


def level_color(alert: Alert) -> str:
    """Webhook attachment color for an alert's level."""
    return LEVEL_COLORS.get(alert.level, LEVEL_COLORS[min(LEVEL_COLORS)])


def format_alert_text(alert: Alert, tz: Optional[tzinfo] = None) -> str:
    """Render an alert as a plain-text block for direct delivery.

    Args:
        alert: Alert to render.
        tz: Recipient's timezone for the time line (UTC if omitted).
    """
    marker = LEVEL_MARKERS.get(alert.level, "⚪")
    return (
        f"{marker} {alert.title}\n\n"
        f"📍 Location: {alert.location or _UNKNOWN_LOCATION}\n"
        f"📊 Current: {alert.value:.2f}\n"
        f"⚠️ Threshold: {alert.threshold:.2f}\n"
        f"🕐 Time: {_local_time(alert.created_at, tz)}\n\n"
        f"{alert.description}"
    )


def format_alert_payload(alert: Alert, user: Optional[User] = None) -> dict[str, Any]:
    """Render an alert as a webhook attachment payload."""
    fields = [
        {"title": "Location", "value": alert.location or _UNKNOWN_LOCATION, "short": True},
        {"title": "Current Value", "value": f"{alert.value:.2f}", "short": True},
        {"title": "Threshold", "value": f"{alert.threshold:.2f}", "short": True},
        {"title": "Severity", "value": alert.level.label, "short": True},
    ]
    if user is not None:
        fields.append({"title": "User", "value": user.get_display_name(), "short": True})

    return {
        "text": "🚨 Weather Alert",
        "attachments": [
            {
                "color": level_color(alert),
                "title": alert.title,
                "text": alert.description,
                "ts": int(alert.created_at.timestamp()),
                "fields": fields,
            },
        ],
    }


def _air_quality_line(aqi: Optional[float]) -> str:
    if aqi is None:
        return "n/a"
    return f"AQI {aqi:.0f} ({describe_air_quality(aqi)})"


def _uv_line(uv_index: float) -> str:
    return f"{uv_index:.0f} ({describe_uv_index(uv_index)})"


def _location(sample: MetricSample, user: User) -> str:
    return user.location_name or sample.location_name or _UNKNOWN_LOCATION


def _wind(sample: MetricSample) -> str:
    wind = _fmt(sample.wind_speed, ".1f", " km/h")
    if sample.wind_speed is not None and sample.wind_direction is not None:
        wind += f" {sample.wind_direction}°"
    return wind


def format_digest_text(
    sample: MetricSample,
    user: User,
    kind: SubscriptionKind = SubscriptionKind.DAILY,
    tz: Optional[tzinfo] = None,
) -> str:
    """Render a scheduled digest as plain text."""
    location = _location(sample, user)

    if kind == SubscriptionKind.WEEKLY:
        return (
            f"📅 Weekly Weather Summary\n"
            f"📍 {location}\n\n"
            f"This week's weather overview:\n"
            f"🌡️ Current temperature: {_fmt(sample.temperature, '.1f', '°C')}\n"
            f"💧 Humidity: {_fmt(sample.humidity, '.0f', '%')}\n"
            f"💨 Wind: {_fmt(sample.wind_speed, '.1f', ' km/h')}\n"
            f"🌿 Air quality: {_air_quality_line(sample.aqi)}\n\n"
            f"Stay weather-aware!\n\n"
            f"Have a great week ahead! 🌟"
        )

    uv = "" if sample.uv_index is None else f"🔆 UV Index: {_uv_line(sample.uv_index)}\n"
    return (
        f"☀️ Daily Weather Update\n"
        f"📍 {location}\n\n"
        f"🌡️ Temperature: {_fmt(sample.temperature, '.1f', '°C')}\n"
        f"💧 Humidity: {_fmt(sample.humidity, '.0f', '%')}\n"
        f"💨 Wind: {_wind(sample)}\n"
        f"🌿 Air Quality: {_air_quality_line(sample.aqi)}\n"
        f"{uv}"
        f"👁️ Visibility: {_fmt(sample.visibility, '.1f', ' km')}\n"
        f"📅 Updated: {_local_time(sample.observed_at, tz)}"
    )


def format_digest_payload(
    sample: MetricSample,
    user: User,
    kind: SubscriptionKind = SubscriptionKind.DAILY,
) -> dict[str, Any]:
    """Render a scheduled digest as a webhook attachment payload."""
    location = _location(sample, user)
    if kind == SubscriptionKind.WEEKLY:
        headline = f"📅 Weekly Weather Summary for {location}"
    else:
        headline = f"🌤️ Daily Weather Update for {location}"

    fields = [
        {"title": "Temperature", "value": _fmt(sample.temperature, ".1f", "°C"), "short": True},
        {"title": "Humidity", "value": _fmt(sample.humidity, ".0f", "%"), "short": True},
        {"title": "Wind", "value": _wind(sample), "short": True},
        {"title": "Air Quality", "value": "n/a" if sample.aqi is None else f"AQI {sample.aqi:.0f}", "short": True},
    ]
    if sample.uv_index is not None:
        fields.append({"title": "UV Index", "value": f"{sample.uv_index:.0f}", "short": True})

    return {
        "text": headline,
        "attachments": [
            {
                "color": "good",
                "title": "Current Conditions",
                "fields": fields,
            },
        ],
    }
