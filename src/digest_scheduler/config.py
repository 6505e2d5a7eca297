"""Scheduler configuration.

Tick cadence, match window, worker pool sizing, and collaborator timeouts,
with ``WEATHER_ALERTS_`` environment overrides.
"""

import enum
import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

from src.weather_alerts.config import (
    DEFAULT_COOLDOWN_SECONDS,
    OpenWeatherConfig,
    SlackConfig,
    TelegramConfig,
    _env_number,
)
from src.weather_alerts.exceptions import ConfigurationError


class SchedulerState(enum.Enum):
    """Lifecycle states of the digest scheduler."""
    IDLE = "idle"
    RUNNING = "running"
    STOP_REQUESTED = "stop_requested"
    STOPPED = "stopped"


@dataclass
class SchedulerConfig:
    """Configuration for the periodic scan.

    Attributes:
        tick_interval_seconds: Seconds between ticks.
        match_window_minutes: Width of the forward-only digest match window.
        max_workers: Per-user fan-out pool size per phase.
        fetch_timeout_seconds: Upper bound on one metric fetch.
        dispatch_timeout_seconds: Upper bound on one channel send.
        alert_cooldown_seconds: Minimum interval between repeats of an alert.
        max_hung_calls: Timed-out collaborator calls that may still be running
            before new calls are refused.
    """
    tick_interval_seconds: float = 300
    match_window_minutes: int = 5
    max_workers: int = 8
    fetch_timeout_seconds: float = 10.0
    dispatch_timeout_seconds: float = 10.0
    alert_cooldown_seconds: float = DEFAULT_COOLDOWN_SECONDS
    max_hung_calls: int = 32

    @property
    def window_seconds(self) -> float:
        return self.match_window_minutes * 60

    def validate(self) -> None:
        """Reject settings under which the scheduler cannot honor delivery.

        Raises:
            ConfigurationError: On non-positive values, or when the tick
                interval is wider than the match window (digests would be
                missed between ticks).
        """
        positive = {
            "tick_interval_seconds": self.tick_interval_seconds,
            "match_window_minutes": self.match_window_minutes,
            "max_workers": self.max_workers,
            "fetch_timeout_seconds": self.fetch_timeout_seconds,
            "dispatch_timeout_seconds": self.dispatch_timeout_seconds,
            "max_hung_calls": self.max_hung_calls,
        }
        for name, value in positive.items():
            if value <= 0:
                raise ConfigurationError(f"{name} must be positive, got {value}", field=name)

        if self.alert_cooldown_seconds < 0:
            raise ConfigurationError(
                f"alert_cooldown_seconds must not be negative, got {self.alert_cooldown_seconds}",
                field="alert_cooldown_seconds",
            )

        if self.tick_interval_seconds > self.window_seconds:
            raise ConfigurationError(
                f"tick_interval_seconds ({self.tick_interval_seconds}) exceeds the "
                f"match window ({self.window_seconds:.0f}s)",
                field="tick_interval_seconds",
            )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "SchedulerConfig":
        environ = os.environ if environ is None else environ
        config = cls()
        overrides = {
            "tick_interval_seconds": ("TICK_INTERVAL_SECONDS", float),
            "match_window_minutes": ("MATCH_WINDOW_MINUTES", int),
            "max_workers": ("MAX_WORKERS", int),
            "fetch_timeout_seconds": ("FETCH_TIMEOUT_SECONDS", float),
            "dispatch_timeout_seconds": ("DISPATCH_TIMEOUT_SECONDS", float),
            "alert_cooldown_seconds": ("ALERT_COOLDOWN_SECONDS", float),
            "max_hung_calls": ("MAX_HUNG_CALLS", int),
        }
        for attr, (name, cast) in overrides.items():
            value = _env_number(environ, name, cast)
            if value is not None:
                setattr(config, attr, value)
        return config


@dataclass
class Settings:
    """All service settings."""
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    openweather: OpenWeatherConfig = field(default_factory=OpenWeatherConfig)
    slack: SlackConfig = field(default_factory=SlackConfig)
    telegram: TelegramConfig = field(default_factory=TelegramConfig)


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Load and validate settings from the environment.

    Raises:
        ConfigurationError: If any value is malformed or inconsistent.
    """
    environ = os.environ if environ is None else environ
    settings = Settings(
        scheduler=SchedulerConfig.from_env(environ),
        openweather=OpenWeatherConfig.from_env(environ),
        slack=SlackConfig.from_env(environ),
        telegram=TelegramConfig.from_env(environ),
    )
    settings.scheduler.validate()
    return settings
