"""Environmental Alert Engine.

Threshold evaluation, type-specific severity classification, cooldown
suppression, and alert rendering for chat and webhook delivery.

Example:
    from src.weather_alerts import (
        AlertConfig, AlertCondition, AlertEngine, AlertType, MetricSample,
        User, Location,
    )

    engine = AlertEngine()
    user = User(user_id="42", location=Location("Kyiv", 50.45, 30.52))
    config = AlertConfig(
        user_id="42",
        alert_type=AlertType.AIR_QUALITY,
        condition=AlertCondition(">", 100),
    )

    alert = engine.check(user, config, MetricSample(aqi=220))
    # alert.level == AlertLevel.HIGH; a second check within an hour is None
"""

from src.weather_alerts.config import (
    AlertType,
    AlertLevel,
    ComparisonOperator,
    SubscriptionKind,
    Frequency,
    DEFAULT_COOLDOWN_SECONDS,
    LEVEL_COLORS,
    LEVEL_MARKERS,
    SlackConfig,
    TelegramConfig,
    OpenWeatherConfig,
)

from src.weather_alerts.exceptions import (
    WeatherAlertsError,
    InvalidOperatorError,
    ConfigurationError,
    WeatherProviderError,
    DeliveryError,
    SchedulerError,
)

from src.weather_alerts.models import (
    AlertCondition,
    AlertConfig,
    Alert,
    MetricSample,
    Location,
    User,
    Subscription,
)

from src.weather_alerts.conditions import ConditionEvaluator, validate_condition

from src.weather_alerts.severity import (
    SeverityBasis,
    SeverityRule,
    SeverityClassifier,
    SEVERITY_RULES,
    describe_air_quality,
    describe_uv_index,
)

from src.weather_alerts.factory import AlertFactory, generate_alert_id

from src.weather_alerts.cooldown import CooldownTracker, alert_key

from src.weather_alerts.formatter import (
    format_alert_text,
    format_alert_payload,
    format_digest_text,
    format_digest_payload,
)

from src.weather_alerts.clock import resolve_timezone, to_local

from src.weather_alerts.engine import AlertEngine, CheckResult

__all__ = [
    # Config
    "AlertType",
    "AlertLevel",
    "ComparisonOperator",
    "SubscriptionKind",
    "Frequency",
    "DEFAULT_COOLDOWN_SECONDS",
    "LEVEL_COLORS",
    "LEVEL_MARKERS",
    "SlackConfig",
    "TelegramConfig",
    "OpenWeatherConfig",
    # Exceptions
    "WeatherAlertsError",
    "InvalidOperatorError",
    "ConfigurationError",
    "WeatherProviderError",
    "DeliveryError",
    "SchedulerError",
    # Models
    "AlertCondition",
    "AlertConfig",
    "Alert",
    "MetricSample",
    "Location",
    "User",
    "Subscription",
    # Evaluation
    "ConditionEvaluator",
    "validate_condition",
    "SeverityBasis",
    "SeverityRule",
    "SeverityClassifier",
    "SEVERITY_RULES",
    "describe_air_quality",
    "describe_uv_index",
    "AlertFactory",
    "generate_alert_id",
    "CooldownTracker",
    "alert_key",
    # Formatting
    "format_alert_text",
    "format_alert_payload",
    "format_digest_text",
    "format_digest_payload",
    # Clock
    "resolve_timezone",
    "to_local",
    # Engine
    "AlertEngine",
    "CheckResult",
]
