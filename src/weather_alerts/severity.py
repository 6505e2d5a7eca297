"""Severity classification.

Maps an alert type plus measured value and threshold to an AlertLevel.
Temperature and humidity are scored on deviation from the configured
threshold; air quality, UV index, and wind speed are scored on the absolute
measured value because those scales carry fixed health-risk meaning.
"""

import enum
from dataclasses import dataclass

from src.weather_alerts.config import AlertLevel, AlertType


class SeverityBasis(enum.Enum):
    """What quantity a rule's breakpoints are compared against."""
    DEVIATION = "deviation"
    ABSOLUTE = "absolute"


@dataclass(frozen=True)
class SeverityRule:
    """Ordered breakpoints for one alert type.

    Attributes:
        basis: Deviation from threshold or absolute value.
        breakpoints: (breakpoint, level) pairs, highest breakpoint first.
            A level applies when the scored quantity is strictly greater.
    """
    basis: SeverityBasis
    breakpoints: tuple[tuple[float, AlertLevel], ...]

    def classify(self, current_value: float, threshold: float) -> AlertLevel:
        if self.basis == SeverityBasis.DEVIATION:
            score = abs(current_value - threshold)
        else:
            score = current_value

        for breakpoint, level in self.breakpoints:
            if score > breakpoint:
                return level
        return AlertLevel.LOW


SEVERITY_RULES: dict[AlertType, SeverityRule] = {
    AlertType.TEMPERATURE: SeverityRule(
        SeverityBasis.DEVIATION,
        ((15, AlertLevel.CRITICAL), (10, AlertLevel.HIGH), (5, AlertLevel.MEDIUM)),
    ),
    AlertType.HUMIDITY: SeverityRule(
        SeverityBasis.DEVIATION,
        ((30, AlertLevel.HIGH), (20, AlertLevel.MEDIUM)),
    ),
    # US EPA AQI bands
    AlertType.AIR_QUALITY: SeverityRule(
        SeverityBasis.ABSOLUTE,
        ((300, AlertLevel.CRITICAL), (200, AlertLevel.HIGH), (150, AlertLevel.MEDIUM)),
    ),
    # WHO UV index bands
    AlertType.UV_INDEX: SeverityRule(
        SeverityBasis.ABSOLUTE,
        ((10, AlertLevel.CRITICAL), (7, AlertLevel.HIGH), (5, AlertLevel.MEDIUM)),
    ),
    # km/h: hurricane, storm, gale
    AlertType.WIND_SPEED: SeverityRule(
        SeverityBasis.ABSOLUTE,
        ((80, AlertLevel.CRITICAL), (60, AlertLevel.HIGH), (40, AlertLevel.MEDIUM)),
    ),
}

# Level for types without a rule
DEFAULT_LEVEL = AlertLevel.MEDIUM


class SeverityClassifier:
    """Table-driven severity classification."""

    def __init__(self, rules: dict[AlertType, SeverityRule] = None) -> None:
        self.rules = SEVERITY_RULES if rules is None else rules

    def classify(self, alert_type, current_value: float, threshold: float) -> AlertLevel:
        rule = self.rules.get(alert_type)
        if rule is None:
            return DEFAULT_LEVEL
        return rule.classify(current_value, threshold)


def describe_air_quality(aqi: float) -> str:
    """Human-readable band for a US EPA AQI value."""
    if aqi <= 50:
        return "Good - Air quality is satisfactory"
    if aqi <= 100:
        return "Moderate - Air quality is acceptable for most people"
    if aqi <= 150:
        return "Unhealthy for Sensitive Groups"
    if aqi <= 200:
        return "Unhealthy - Everyone may experience health effects"
    if aqi <= 300:
        return "Very Unhealthy - Health alert"
    return "Hazardous - Health warnings of emergency conditions"


def describe_uv_index(uv_index: float) -> str:
    """Human-readable band for a UV index value."""
    if uv_index <= 2:
        return "Low - Minimal protection required"
    if uv_index <= 5:
        return "Moderate - Take precautions when outside"
    if uv_index <= 7:
        return "High - Protection required"
    if uv_index <= 10:
        return "Very High - Extra protection required"
    return "Extreme - Avoid being outside"
