"""Structured Logging & Tick Tracing.

Provides structured JSON logging, tick/user ID propagation,
and phase timing for the alert scheduler.
"""

from src.logging_config.config import LogFormat, LoggingConfig, LogLevel
from src.logging_config.context import LogContext, generate_tick_id, get_context_dict
from src.logging_config.performance import PerformanceTimer
from src.logging_config.setup import configure_logging, get_logger

__all__ = [
    "LogFormat",
    "LogLevel",
    "LoggingConfig",
    "LogContext",
    "PerformanceTimer",
    "configure_logging",
    "generate_tick_id",
    "get_context_dict",
    "get_logger",
]
