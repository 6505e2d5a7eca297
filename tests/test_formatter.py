"""Tests for alert and digest rendering and timezone helpers."""

from datetime import datetime, timezone

import pytest

from src.weather_alerts.clock import resolve_timezone, to_local
from src.weather_alerts.config import LEVEL_COLORS, AlertLevel, AlertType, SubscriptionKind
from src.weather_alerts.formatter import (
    format_alert_payload,
    format_alert_text,
    format_digest_payload,
    format_digest_text,
    level_color,
)
from src.weather_alerts.models import Alert, Location, MetricSample, User


def _alert(level=AlertLevel.HIGH, location="Kyiv"):
    return Alert(
        alert_id="alert_1",
        alert_type=AlertType.AIR_QUALITY,
        level=level,
        title=f"Air Quality Alert - {level.label}",
        description="Air Quality Index is 220, threshold: 100 - Unhealthy for sensitive groups",
        value=220,
        threshold=100,
        location=location,
        user_id="42",
        created_at=datetime(2024, 1, 15, 8, 30, tzinfo=timezone.utc),
    )


def _user(**kwargs):
    defaults = dict(user_id="42", display_name="Olena", location=Location("Kyiv", 50.45, 30.52))
    defaults.update(kwargs)
    return User(**defaults)


class TestLevelColors:
    """Webhook colors are fixed per level."""

    @pytest.mark.parametrize("level,color", [
        (AlertLevel.LOW, "#36a64f"),
        (AlertLevel.MEDIUM, "#ffcc00"),
        (AlertLevel.HIGH, "#ff9900"),
        (AlertLevel.CRITICAL, "#ff0000"),
    ])
    def test_exact_colors(self, level, color):
        assert LEVEL_COLORS[level] == color
        assert level_color(_alert(level)) == color


class TestAlertText:

    def test_layout(self):
        text = format_alert_text(_alert())
        lines = text.split("\n")
        assert lines[0] == "🟠 Air Quality Alert - High"
        assert "📍 Location: Kyiv" in lines
        assert "📊 Current: 220.00" in lines
        assert "⚠️ Threshold: 100.00" in lines
        assert "🕐 Time: 08:30 UTC" in lines
        assert lines[-1].endswith("Unhealthy for sensitive groups")

    def test_local_time(self):
        text = format_alert_text(_alert(), resolve_timezone("Europe/Kyiv"))
        assert "🕐 Time: 10:30 EET" in text

    def test_missing_location(self):
        assert "📍 Location: Unknown Location" in format_alert_text(_alert(location=""))

    def test_critical_marker(self):
        assert format_alert_text(_alert(AlertLevel.CRITICAL)).startswith("🔴")


class TestAlertPayload:

    def test_attachment(self):
        payload = format_alert_payload(_alert(), _user())
        assert payload["text"] == "🚨 Weather Alert"
        attachment = payload["attachments"][0]
        assert attachment["color"] == "#ff9900"
        assert attachment["title"] == "Air Quality Alert - High"
        assert attachment["ts"] == int(datetime(2024, 1, 15, 8, 30, tzinfo=timezone.utc).timestamp())
        fields = {f["title"]: f["value"] for f in attachment["fields"]}
        assert fields == {
            "Location": "Kyiv",
            "Current Value": "220.00",
            "Threshold": "100.00",
            "Severity": "High",
            "User": "Olena",
        }

    def test_without_user(self):
        payload = format_alert_payload(_alert())
        titles = [f["title"] for f in payload["attachments"][0]["fields"]]
        assert "User" not in titles

    def test_display_name_fallback(self):
        payload = format_alert_payload(_alert(), _user(display_name=""))
        fields = {f["title"]: f["value"] for f in payload["attachments"][0]["fields"]}
        assert fields["User"] == "User_42"


class TestDigest:

    def _sample(self, **kwargs):
        defaults = dict(
            temperature=21.46, humidity=55, wind_speed=12.6, wind_direction=270,
            aqi=42, visibility=10.0,
            observed_at=datetime(2024, 1, 15, 6, 0, tzinfo=timezone.utc),
        )
        defaults.update(kwargs)
        return MetricSample(**defaults)

    def test_daily_text(self):
        text = format_digest_text(self._sample(), _user())
        assert text.startswith("☀️ Daily Weather Update\n📍 Kyiv")
        assert "🌡️ Temperature: 21.5°C" in text
        assert "💧 Humidity: 55%" in text
        assert "💨 Wind: 12.6 km/h 270°" in text
        assert "🌿 Air Quality: AQI 42 (Good - Air quality is satisfactory)" in text
        assert "👁️ Visibility: 10.0 km" in text
        assert "📅 Updated: 06:00 UTC" in text

    def test_daily_uv_line(self):
        text = format_digest_text(self._sample(uv_index=6.4), _user())
        assert "🔆 UV Index: 6 (High - Protection required)\n👁️ Visibility" in text
        assert "UV Index" not in format_digest_text(self._sample(), _user())

    def test_uv_field_only_when_known(self):
        payload = format_digest_payload(self._sample(uv_index=11), _user())
        fields = {f["title"]: f["value"] for f in payload["attachments"][0]["fields"]}
        assert fields["UV Index"] == "11"
        payload = format_digest_payload(self._sample(), _user())
        assert "UV Index" not in [f["title"] for f in payload["attachments"][0]["fields"]]

    def test_weekly_text(self):
        text = format_digest_text(self._sample(), _user(), SubscriptionKind.WEEKLY)
        assert text.startswith("📅 Weekly Weather Summary")
        assert "This week's weather overview:" in text
        assert "Stay weather-aware!" in text
        assert text.endswith("Have a great week ahead! 🌟")

    def test_missing_values(self):
        text = format_digest_text(MetricSample(temperature=5.0), _user())
        assert "💧 Humidity: n/a" in text
        assert "🌿 Air Quality: n/a" in text
        assert "💨 Wind: n/a" in text

    def test_location_falls_back_to_sample(self):
        text = format_digest_text(MetricSample(location_name="Lviv"), User(user_id="1"))
        assert "📍 Lviv" in text

    def test_daily_payload(self):
        payload = format_digest_payload(self._sample(), _user())
        assert payload["text"] == "🌤️ Daily Weather Update for Kyiv"
        attachment = payload["attachments"][0]
        assert attachment["color"] == "good"
        assert attachment["title"] == "Current Conditions"
        fields = {f["title"]: f["value"] for f in attachment["fields"]}
        assert fields["Temperature"] == "21.5°C"
        assert fields["Air Quality"] == "AQI 42"

    def test_weekly_payload(self):
        payload = format_digest_payload(self._sample(), _user(), SubscriptionKind.WEEKLY)
        assert payload["text"] == "📅 Weekly Weather Summary for Kyiv"


class TestClock:

    def test_utc_default(self):
        assert resolve_timezone("") is timezone.utc
        assert resolve_timezone("UTC") is timezone.utc

    def test_invalid_falls_back_to_utc(self, caplog):
        with caplog.at_level("WARNING"):
            assert resolve_timezone("Mars/Olympus_Mons") is timezone.utc
        assert "Invalid timezone" in caplog.text

    def test_to_local(self):
        instant = datetime(2024, 7, 1, 12, 0, tzinfo=timezone.utc)
        local = to_local(instant, "America/New_York")
        assert (local.hour, local.minute) == (8, 0)

    def test_naive_treated_as_utc(self):
        local = to_local(datetime(2024, 1, 1, 23, 30), "Asia/Tokyo")
        assert (local.day, local.hour) == (2, 8)
