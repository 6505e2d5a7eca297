"""Tests for scheduler and channel configuration."""

import pytest

from src.digest_scheduler.config import SchedulerConfig, load_settings
from src.weather_alerts.config import OpenWeatherConfig, SlackConfig, TelegramConfig
from src.weather_alerts.exceptions import ConfigurationError


class TestSchedulerConfig:
    """Defaults and validation."""

    def test_defaults(self):
        config = SchedulerConfig()
        assert config.tick_interval_seconds == 300
        assert config.match_window_minutes == 5
        assert config.window_seconds == 300
        assert config.alert_cooldown_seconds == 3600
        config.validate()

    @pytest.mark.parametrize("field", [
        "tick_interval_seconds",
        "match_window_minutes",
        "max_workers",
        "fetch_timeout_seconds",
        "dispatch_timeout_seconds",
        "max_hung_calls",
    ])
    def test_non_positive_rejected(self, field):
        config = SchedulerConfig(**{field: 0})
        with pytest.raises(ConfigurationError) as exc_info:
            config.validate()
        assert exc_info.value.field == field

    def test_negative_cooldown_rejected(self):
        with pytest.raises(ConfigurationError):
            SchedulerConfig(alert_cooldown_seconds=-1).validate()

    def test_zero_cooldown_allowed(self):
        SchedulerConfig(alert_cooldown_seconds=0).validate()

    def test_tick_wider_than_window_rejected(self):
        with pytest.raises(ConfigurationError) as exc_info:
            SchedulerConfig(tick_interval_seconds=301).validate()
        assert exc_info.value.field == "tick_interval_seconds"

    def test_wider_window_allows_slower_tick(self):
        SchedulerConfig(tick_interval_seconds=600, match_window_minutes=10).validate()


class TestFromEnv:

    def test_overrides(self):
        config = SchedulerConfig.from_env({
            "WEATHER_ALERTS_TICK_INTERVAL_SECONDS": "60",
            "WEATHER_ALERTS_MATCH_WINDOW_MINUTES": "2",
            "WEATHER_ALERTS_MAX_WORKERS": "4",
            "WEATHER_ALERTS_FETCH_TIMEOUT_SECONDS": "2.5",
            "WEATHER_ALERTS_MAX_HUNG_CALLS": "4",
        })
        assert config.tick_interval_seconds == 60.0
        assert config.match_window_minutes == 2
        assert config.max_workers == 4
        assert config.fetch_timeout_seconds == 2.5
        assert config.max_hung_calls == 4
        assert config.dispatch_timeout_seconds == 10.0

    def test_blank_values_ignored(self):
        config = SchedulerConfig.from_env({"WEATHER_ALERTS_MAX_WORKERS": "  "})
        assert config.max_workers == 8

    def test_malformed_number(self):
        with pytest.raises(ConfigurationError, match="MAX_WORKERS"):
            SchedulerConfig.from_env({"WEATHER_ALERTS_MAX_WORKERS": "eight"})

    def test_channel_configs(self):
        environ = {
            "WEATHER_ALERTS_SLACK_WEBHOOK_URL": "https://hooks.slack.com/services/T1/B1/x",
            "WEATHER_ALERTS_TELEGRAM_BOT_TOKEN": "123:abc",
            "WEATHER_ALERTS_OPENWEATHER_API_KEY": "key",
            "WEATHER_ALERTS_OPENWEATHER_TIMEOUT_SECONDS": "3",
        }
        assert SlackConfig.from_env(environ).webhook_url.endswith("/x")
        assert TelegramConfig.from_env(environ).bot_token == "123:abc"
        openweather = OpenWeatherConfig.from_env(environ)
        assert openweather.api_key == "key"
        assert openweather.timeout_seconds == 3.0
        assert openweather.base_url == "https://api.openweathermap.org"


class TestLoadSettings:

    def test_loads_all_sections(self):
        settings = load_settings({
            "WEATHER_ALERTS_TICK_INTERVAL_SECONDS": "120",
            "WEATHER_ALERTS_OPENWEATHER_API_KEY": "key",
        })
        assert settings.scheduler.tick_interval_seconds == 120
        assert settings.openweather.api_key == "key"
        assert settings.slack.webhook_url == ""

    @pytest.mark.parametrize("name", [
        "WEATHER_ALERTS_SLACK_TIMEOUT_SECONDS",
        "WEATHER_ALERTS_TELEGRAM_TIMEOUT_SECONDS",
        "WEATHER_ALERTS_OPENWEATHER_TIMEOUT_SECONDS",
    ])
    def test_malformed_channel_timeout(self, name):
        with pytest.raises(ConfigurationError) as exc_info:
            load_settings({name: "abc"})
        assert exc_info.value.field == name[len("WEATHER_ALERTS_"):].lower()

    def test_validates(self):
        with pytest.raises(ConfigurationError):
            load_settings({"WEATHER_ALERTS_TICK_INTERVAL_SECONDS": "900"})
