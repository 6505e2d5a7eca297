"""Logging Configuration.

Settings for structured logging, log levels, and output formats, with
``WEATHER_ALERTS_LOG_*`` environment overrides.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Mapping

ENV_PREFIX = "WEATHER_ALERTS_"


class LogLevel(str, Enum):
    """Log level options."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output format."""
    JSON = "json"
    CONSOLE = "console"


@dataclass
class LoggingConfig:
    """Structured logging configuration.

    Attributes:
        level: Root logger level.
        format: JSON lines for collectors, or colored console output.
        include_caller: Add module, function and line to JSON records.
        slow_threshold_ms: Scheduler phases at or above this duration
            are logged at WARNING.
        service_name: Value of the ``service`` field in JSON records.
    """

    level: LogLevel = LogLevel.INFO
    format: LogFormat = LogFormat.JSON
    include_caller: bool = True
    slow_threshold_ms: float = 1000.0
    service_name: str = "weather-alerts"

    def with_env_overrides(self, environ: Mapping[str, str]) -> "LoggingConfig":
        """Copy with LOG_LEVEL, LOG_FORMAT and SLOW_PHASE_MS applied.

        Unknown or malformed values are ignored.
        """
        config = self
        env_level = environ.get(ENV_PREFIX + "LOG_LEVEL", "").strip().upper()
        if env_level in LogLevel.__members__:
            config = replace(config, level=LogLevel(env_level))

        env_format = environ.get(ENV_PREFIX + "LOG_FORMAT", "").strip().lower()
        if env_format in {f.value for f in LogFormat}:
            config = replace(config, format=LogFormat(env_format))

        try:
            slow_ms = float(environ.get(ENV_PREFIX + "SLOW_PHASE_MS", ""))
        except ValueError:
            slow_ms = 0.0
        if slow_ms > 0:
            config = replace(config, slow_threshold_ms=slow_ms)
        return config


DEFAULT_LOGGING_CONFIG = LoggingConfig()

_active_config = DEFAULT_LOGGING_CONFIG


def active_config() -> LoggingConfig:
    """The configuration most recently applied by ``configure_logging``."""
    return _active_config


def set_active_config(config: LoggingConfig) -> None:
    global _active_config
    _active_config = config
