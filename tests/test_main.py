"""Tests for the command-line entry point."""

import json
from unittest.mock import MagicMock

import pytest

import main
from src.digest_scheduler.config import Settings
from src.digest_scheduler.service import build_scheduler
from src.digest_scheduler.storage import InMemoryStorage
from src.weather_alerts.exceptions import ConfigurationError
from src.weather_alerts.models import Location, MetricSample, User


@pytest.fixture
def collaborators():
    weather = MagicMock()
    weather.current_metrics.return_value = MetricSample(temperature=20.0)
    channel = MagicMock()
    channel.name = "mock"
    return weather, channel


@pytest.fixture
def once(monkeypatch, collaborators):
    weather, channel = collaborators
    storage = InMemoryStorage()
    storage.add_user(User(user_id="1", location=Location("Kyiv", 50.45, 30.52)))
    scheduler = build_scheduler(Settings(), storage=storage, weather=weather, channels=[channel])
    monkeypatch.setattr(main, "configure_logging", lambda config: None)
    monkeypatch.setattr(main, "load_settings", lambda: Settings())
    monkeypatch.setattr(main, "build_scheduler", lambda settings: scheduler)
    return scheduler


class TestOnce:

    def test_prints_report_and_closes_clients(self, once, collaborators, capsys):
        weather, channel = collaborators
        assert main.main(["--once"]) == 0

        report = json.loads(capsys.readouterr().out)
        assert report["users_scanned"] == 1
        assert report["failures"] == 0
        weather.close.assert_called_once()
        channel.close.assert_called_once()

    def test_clients_closed_when_tick_raises(self, once, collaborators, monkeypatch):
        weather, channel = collaborators

        def broken(now=None):
            raise RuntimeError("tick exploded")

        monkeypatch.setattr(once, "run_tick", broken)
        with pytest.raises(RuntimeError):
            main.main(["--once"])
        weather.close.assert_called_once()
        channel.close.assert_called_once()

    def test_invalid_configuration_exits_1(self, monkeypatch, capsys):
        def invalid():
            raise ConfigurationError("Invalid value for SLACK_TIMEOUT_SECONDS: 'abc'")

        monkeypatch.setattr(main, "configure_logging", lambda config: None)
        monkeypatch.setattr(main, "load_settings", invalid)
        assert main.main(["--once"]) == 1
        assert "Invalid configuration" in capsys.readouterr().err
