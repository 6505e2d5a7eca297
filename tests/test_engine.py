"""Tests for the alert engine."""

from src.weather_alerts.config import AlertLevel, AlertType
from src.weather_alerts.cooldown import CooldownTracker
from src.weather_alerts.engine import AlertEngine
from src.weather_alerts.models import AlertCondition, AlertConfig, Location, MetricSample, User


class TestAlertEngine:
    """Test evaluate -> classify -> cooldown flow."""

    def _user(self):
        return User(user_id="42", location=Location("Kyiv", 50.45, 30.52))

    def _aqi_config(self, threshold=100):
        return AlertConfig(
            config_id="c1",
            user_id="42",
            alert_type=AlertType.AIR_QUALITY,
            condition=AlertCondition(">", threshold),
        )

    def test_air_quality_end_to_end(self, clock):
        engine = AlertEngine(cooldown=CooldownTracker(3600, clock=clock))
        user, config, sample = self._user(), self._aqi_config(), MetricSample(aqi=220)

        assert engine.evaluator.evaluate(220, config.condition) is True
        alert = engine.check(user, config, sample)
        assert alert is not None
        assert alert.level == AlertLevel.HIGH
        assert "Unhealthy" in alert.description
        assert alert.user_id == "42"
        assert alert.location == "Kyiv"

        clock.advance(minutes=30)
        assert engine.check(user, config, sample) is None
        clock.advance(minutes=30)
        assert engine.check(user, config, sample) is not None

    def test_evaluate_has_no_side_effects(self):
        engine = AlertEngine()
        config, sample = self._aqi_config(), MetricSample(aqi=220)
        assert engine.evaluate(config, sample, "Kyiv") is not None
        assert engine.evaluate(config, sample, "Kyiv") is not None
        assert len(engine.cooldown) == 0

    def test_missing_metric_skipped(self):
        engine = AlertEngine()
        assert engine.check(self._user(), self._aqi_config(), MetricSample(temperature=20)) is None
        assert engine.get_stats()["skipped"] == 1

    def test_condition_not_met(self):
        engine = AlertEngine()
        assert engine.check(self._user(), self._aqi_config(), MetricSample(aqi=50)) is None
        assert engine.get_stats()["triggered"] == 0

    def test_check_user_counts_suppressed(self):
        engine = AlertEngine()
        user = self._user()
        configs = [
            self._aqi_config(),
            AlertConfig(
                user_id="42",
                alert_type=AlertType.TEMPERATURE,
                condition=AlertCondition(">", 30),
            ),
            AlertConfig(
                user_id="42",
                alert_type=AlertType.HUMIDITY,
                condition=AlertCondition(">", 10),
                active=False,
            ),
        ]
        sample = MetricSample(aqi=220, temperature=35, humidity=90)

        first = engine.check_user(user, configs, sample)
        assert len(first.alerts) == 2
        assert first.suppressed == 0

        second = engine.check_user(user, configs, sample)
        assert second.alerts == []
        assert second.suppressed == 2

        stats = engine.get_stats()
        assert stats["triggered"] == 2
        assert stats["suppressed"] == 2
        assert stats["cooldown_keys"] == 2

    def test_check_all_returns_alerts(self):
        engine = AlertEngine()
        alerts = engine.check_all(self._user(), [self._aqi_config()], MetricSample(aqi=320))
        assert [a.level for a in alerts] == [AlertLevel.CRITICAL]
