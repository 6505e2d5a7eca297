"""Weather alerting data models.

Dataclasses for conditions, alerts, metric samples, users, and subscriptions.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from src.weather_alerts.config import (
    AlertLevel,
    AlertType,
    ComparisonOperator,
    Frequency,
    SubscriptionKind,
)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return uuid.uuid4().hex


_COMPARISONS = {
    ComparisonOperator.GT.value: lambda value, threshold: value > threshold,
    ComparisonOperator.LT.value: lambda value, threshold: value < threshold,
    ComparisonOperator.GTE.value: lambda value, threshold: value >= threshold,
    ComparisonOperator.LTE.value: lambda value, threshold: value <= threshold,
    ComparisonOperator.EQ.value: lambda value, threshold: value == threshold,
}

VALID_OPERATORS = frozenset(_COMPARISONS)


@dataclass
class AlertCondition:
    """Threshold condition of an alert configuration.

    Attributes:
        operator: One of ``>``, ``<``, ``>=``, ``<=``, ``=``.
        value: Comparison value (the threshold).
    """
    operator: str
    value: float

    def __post_init__(self) -> None:
        if isinstance(self.operator, ComparisonOperator):
            self.operator = self.operator.value

    def evaluate(self, current_value: float) -> bool:
        """Evaluate condition against a measured value.

        ``=`` is exact equality. Unknown operators never match.
        """
        compare = _COMPARISONS.get(self.operator)
        if compare is None:
            return False
        return compare(current_value, self.value)

    @property
    def is_valid(self) -> bool:
        return self.operator in VALID_OPERATORS


@dataclass
class AlertConfig:
    """A user's configured threshold alert.

    Attributes:
        config_id: Unique configuration identifier.
        user_id: Owner user ID.
        alert_type: Metric the condition applies to.
        condition: Operator and threshold.
        active: Whether the configuration is evaluated.
    """
    config_id: str = field(default_factory=_new_id)
    user_id: str = ""
    alert_type: AlertType = AlertType.TEMPERATURE
    condition: AlertCondition = field(
        default_factory=lambda: AlertCondition(ComparisonOperator.GT.value, 0.0)
    )
    active: bool = True

    @property
    def threshold(self) -> float:
        return self.condition.value


@dataclass
class Alert:
    """A triggered environmental alert.

    Immutable apart from resolution.

    Attributes:
        alert_id: Unique alert identifier.
        alert_type: Type of alert.
        level: Severity tier.
        title: Short headline.
        description: Unit-aware human description.
        value: Measured value at trigger time.
        threshold: Configured threshold.
        location: Location name.
        user_id: Owning user.
        created_at: Trigger timestamp.
        resolved: Whether the alert has been resolved.
        resolved_at: Resolution timestamp.
    """
    alert_id: str
    alert_type: AlertType
    level: AlertLevel
    title: str
    description: str
    value: float
    threshold: float
    location: str
    user_id: str = ""
    created_at: datetime = field(default_factory=_utc_now)
    resolved: bool = False
    resolved_at: Optional[datetime] = None

    def resolve(self) -> None:
        """Mark the alert as resolved (idempotent)."""
        if self.resolved:
            return
        self.resolved = True
        self.resolved_at = _utc_now()

    def to_dict(self) -> dict[str, Any]:
        return {
            "alert_id": self.alert_id,
            "alert_type": self.alert_type.value,
            "level": self.level.label,
            "title": self.title,
            "description": self.description,
            "value": self.value,
            "threshold": self.threshold,
            "location": self.location,
            "user_id": self.user_id,
            "created_at": self.created_at.isoformat(),
            "resolved": self.resolved,
            "resolved_at": self.resolved_at.isoformat() if self.resolved_at else None,
        }


@dataclass
class MetricSample:
    """Current conditions at a location.

    Numeric fields are ``None`` when the provider did not report them.
    Wind speed is in km/h, visibility in km, pressure in hPa.
    """
    temperature: Optional[float] = None
    humidity: Optional[float] = None
    pressure: Optional[float] = None
    wind_speed: Optional[float] = None
    wind_direction: Optional[int] = None
    visibility: Optional[float] = None
    uv_index: Optional[float] = None
    aqi: Optional[float] = None
    description: str = ""
    location_name: str = ""
    observed_at: datetime = field(default_factory=_utc_now)

    def value_for(self, alert_type: AlertType) -> Optional[float]:
        """Return the measured value relevant to an alert type."""
        attr = _SAMPLE_FIELDS.get(alert_type)
        if attr is None:
            return None
        return getattr(self, attr)


_SAMPLE_FIELDS: dict[AlertType, str] = {
    AlertType.TEMPERATURE: "temperature",
    AlertType.HUMIDITY: "humidity",
    AlertType.PRESSURE: "pressure",
    AlertType.WIND_SPEED: "wind_speed",
    AlertType.AIR_QUALITY: "aqi",
    AlertType.UV_INDEX: "uv_index",
    AlertType.VISIBILITY: "visibility",
}


@dataclass
class Location:
    """A monitored location."""
    name: str
    latitude: float
    longitude: float


@dataclass
class User:
    """Notification recipient.

    Attributes:
        user_id: User ID.
        display_name: Name used in messages.
        timezone: IANA timezone identifier.
        location: The user's single monitored location.
        chat_id: Direct-chat identifier (defaults to user_id).
        active: Whether the user receives notifications.
    """
    user_id: str
    display_name: str = ""
    timezone: str = "UTC"
    location: Optional[Location] = None
    chat_id: str = ""
    active: bool = True

    @property
    def has_location(self) -> bool:
        return self.location is not None and bool(self.location.name)

    @property
    def location_name(self) -> str:
        return self.location.name if self.location else ""

    def get_display_name(self) -> str:
        return self.display_name or f"User_{self.user_id}"

    def get_chat_id(self) -> str:
        return self.chat_id or self.user_id


@dataclass
class Subscription:
    """Recurring notification subscription.

    Attributes:
        subscription_id: Unique identifier.
        user_id: Owner user ID.
        kind: Daily, Weekly, AlertsOnly, or ExtremeOnly.
        frequency: Cadence.
        time_of_day: ``HH:MM`` in the owner's local time.
        active: Whether the subscription is delivered.
    """
    subscription_id: str = field(default_factory=_new_id)
    user_id: str = ""
    kind: SubscriptionKind = SubscriptionKind.DAILY
    frequency: Frequency = Frequency.DAILY
    time_of_day: str = "08:00"
    active: bool = True
