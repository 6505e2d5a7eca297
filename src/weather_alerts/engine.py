"""Alert evaluation engine.

Runs a user's alert configurations against a metric sample: condition
evaluation, severity classification, cooldown gating, and alert creation.
Delivery is left to the caller.
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Optional

from src.weather_alerts.conditions import ConditionEvaluator
from src.weather_alerts.cooldown import CooldownTracker, alert_key
from src.weather_alerts.factory import AlertFactory
from src.weather_alerts.models import Alert, AlertConfig, MetricSample, User

logger = logging.getLogger(__name__)


@dataclass
class CheckResult:
    """Alerts that fired for one user, plus how many were held back by cooldown."""
    alerts: list[Alert] = field(default_factory=list)
    suppressed: int = 0


class AlertEngine:
    """Core threshold alert engine.

    ``evaluate`` is side-effect free. ``check`` additionally passes the
    result through the cooldown gate and is safe to call from concurrent
    per-user workers.
    """

    def __init__(
        self,
        evaluator: Optional[ConditionEvaluator] = None,
        factory: Optional[AlertFactory] = None,
        cooldown: Optional[CooldownTracker] = None,
    ) -> None:
        self.evaluator = evaluator or ConditionEvaluator()
        self.factory = factory or AlertFactory()
        self.cooldown = cooldown or CooldownTracker()
        self._stats_lock = threading.Lock()
        self._stats = {"evaluated": 0, "triggered": 0, "suppressed": 0, "skipped": 0}

    def _count(self, name: str) -> None:
        with self._stats_lock:
            self._stats[name] += 1

    def evaluate(
        self,
        config: AlertConfig,
        sample: MetricSample,
        location: str,
        user_id: Optional[str] = None,
    ) -> Optional[Alert]:
        """Evaluate one configuration without committing to a trigger.

        Returns:
            The alert that would fire, or None if the condition is not met
            or the sample lacks the metric.
        """
        value = sample.value_for(config.alert_type)
        if value is None:
            logger.debug(
                "No %s value in sample for config %s",
                getattr(config.alert_type, "value", config.alert_type),
                config.config_id,
            )
            self._count("skipped")
            return None

        self._count("evaluated")
        if not self.evaluator.evaluate(value, config.condition):
            return None

        return self.factory.create(
            config.alert_type,
            value,
            config.threshold,
            location,
            user_id=user_id or config.user_id,
        )

    def _claim(
        self,
        user: User,
        config: AlertConfig,
        sample: MetricSample,
    ) -> tuple[Optional[Alert], bool]:
        location = user.location_name
        alert = self.evaluate(config, sample, location, user_id=user.user_id)
        if alert is None:
            return None, False

        key = alert_key(user.user_id, config.alert_type, location)
        if not self.cooldown.try_trigger(key):
            self._count("suppressed")
            logger.debug("Suppressed %s alert for user %s (cooldown)", alert.alert_type.value, user.user_id)
            return None, True

        self._count("triggered")
        logger.info(
            "Alert triggered: %s (%s) for user %s",
            alert.title, alert.alert_id, user.user_id,
        )
        return alert, False

    def check(
        self,
        user: User,
        config: AlertConfig,
        sample: MetricSample,
    ) -> Optional[Alert]:
        """Evaluate a configuration and claim its cooldown slot.

        Returns:
            The alert to dispatch, or None if nothing fired or the key is
            still cooling down.
        """
        alert, _ = self._claim(user, config, sample)
        return alert

    def check_user(
        self,
        user: User,
        configs: list[AlertConfig],
        sample: MetricSample,
    ) -> CheckResult:
        """Run every active configuration of a user against one sample."""
        result = CheckResult()
        for config in configs:
            if not config.active:
                continue
            alert, suppressed = self._claim(user, config, sample)
            if alert is not None:
                result.alerts.append(alert)
            elif suppressed:
                result.suppressed += 1
        return result

    def check_all(
        self,
        user: User,
        configs: list[AlertConfig],
        sample: MetricSample,
    ) -> list[Alert]:
        return self.check_user(user, configs, sample).alerts

    def get_stats(self) -> dict:
        """Get engine counters."""
        with self._stats_lock:
            stats = dict(self._stats)
        stats["cooldown_keys"] = len(self.cooldown)
        return stats
