"""Alert construction.

Builds Alert records with severity, title, and a unit-aware description.
Creating an alert has no side effects; cooldown marking is done separately
by the caller.
"""

import uuid
from typing import Optional

from src.weather_alerts.config import (
    AQI_UNHEALTHY_CUTOFF,
    UV_VERY_HIGH_CUTOFF,
    AlertType,
)
from src.weather_alerts.models import Alert, _utc_now
from src.weather_alerts.severity import SeverityClassifier


def generate_alert_id() -> str:
    """Return a collision-free alert ID."""
    return f"alert_{uuid.uuid4().hex}"


def _type_label(alert_type) -> str:
    return alert_type.label if isinstance(alert_type, AlertType) else "Unknown"


def _direction(value: float, threshold: float) -> str:
    return "above" if value > threshold else "below"


def describe_alert(alert_type: AlertType, value: float, threshold: float) -> str:
    """Build the description line for an alert."""
    if alert_type == AlertType.TEMPERATURE:
        unit = alert_type.unit
        return (
            f"Temperature is {value:.1f}{unit}, "
            f"{_direction(value, threshold)} threshold of {threshold:.1f}{unit}"
        )

    if alert_type == AlertType.HUMIDITY:
        return (
            f"Humidity is {value:.0f}%, "
            f"{_direction(value, threshold)} threshold of {threshold:.0f}%"
        )

    if alert_type == AlertType.AIR_QUALITY:
        text = f"Air Quality Index is {value:.0f}, threshold: {threshold:.0f}"
        if value > AQI_UNHEALTHY_CUTOFF:
            text += " - Unhealthy for sensitive groups"
        return text

    if alert_type == AlertType.WIND_SPEED:
        unit = alert_type.unit
        return f"Wind speed is {value:.1f}{unit}, threshold: {threshold:.1f}{unit}"

    if alert_type == AlertType.UV_INDEX:
        text = f"UV Index is {value:.1f}, threshold: {threshold:.1f}"
        if value > UV_VERY_HIGH_CUTOFF:
            text += " - Very high UV exposure"
        return text

    label = _type_label(alert_type)
    return f"{label} is {value:.2f}, threshold: {threshold:.2f}"


class AlertFactory:
    """Creates Alert records from a triggered condition."""

    def __init__(self, classifier: Optional[SeverityClassifier] = None) -> None:
        self.classifier = classifier or SeverityClassifier()

    def create(
        self,
        alert_type: AlertType,
        value: float,
        threshold: float,
        location: str,
        user_id: str = "",
    ) -> Alert:
        """Build an alert.

        Args:
            alert_type: Type of alert.
            value: Measured value.
            threshold: Configured threshold.
            location: Location name.
            user_id: Owning user.

        Returns:
            New, unresolved Alert.
        """
        level = self.classifier.classify(alert_type, value, threshold)
        return Alert(
            alert_id=generate_alert_id(),
            alert_type=alert_type,
            level=level,
            title=f"{_type_label(alert_type)} Alert - {level.label}",
            description=describe_alert(alert_type, value, threshold),
            value=value,
            threshold=threshold,
            location=location,
            user_id=user_id,
            created_at=_utc_now(),
        )
