"""Exception hierarchy for the weather alerting core.

Only failure to start the tick source is fatal. Everything else is either
rejected at validation time or logged and skipped by the scheduler.
"""

from typing import Any, Dict, List, Optional


class WeatherAlertsError(Exception):
    """Base exception for all weather alerting errors."""

    def __init__(
        self,
        message: str,
        details: Optional[List[Dict[str, Any]]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or []


class InvalidOperatorError(WeatherAlertsError, ValueError):
    """Raised when an alert condition uses an unsupported operator."""

    def __init__(self, operator: str):
        super().__init__(
            f"Invalid operator: {operator!r}",
            details=[{"field": "operator", "value": operator}],
        )
        self.operator = operator


class ConfigurationError(WeatherAlertsError, ValueError):
    """Raised when scheduler or channel settings are inconsistent."""

    def __init__(self, message: str, field: Optional[str] = None):
        details = [{"field": field, "issue": message}] if field else None
        super().__init__(message, details)
        self.field = field


class WeatherProviderError(WeatherAlertsError):
    """Raised when a metric sample cannot be fetched."""


class DeliveryError(WeatherAlertsError):
    """Raised when a channel fails to deliver a message."""

    def __init__(self, channel: str, message: str, status_code: Optional[int] = None):
        super().__init__(f"{channel}: {message}")
        self.channel = channel
        self.status_code = status_code


class SchedulerError(WeatherAlertsError):
    """Raised when the scheduler tick source cannot be started."""
