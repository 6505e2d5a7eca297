"""Performance Logging.

Timing for scheduler phases, with slow phases logged at WARNING.
"""

import logging
import time
from typing import Optional

from src.logging_config.config import active_config

logger = logging.getLogger(__name__)


class PerformanceTimer:
    """Context manager for timing a named phase.

    Without an explicit ``threshold_ms`` the slow-phase threshold comes from
    the configuration last applied by ``configure_logging``.

    Example:
        with PerformanceTimer("alerts") as timer:
            self._run_alert_phase(tick_id, now, report)
        report.durations_ms["alerts"] = timer.duration_ms
    """

    def __init__(self, phase: str, threshold_ms: Optional[float] = None):
        self.phase = phase
        if threshold_ms is None:
            threshold_ms = active_config().slow_threshold_ms
        self.threshold_ms = threshold_ms
        self.start_time: float = 0
        self.duration_ms: float = 0

    def __enter__(self) -> "PerformanceTimer":
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.duration_ms = (time.perf_counter() - self.start_time) * 1000
        extra = {"duration_ms": round(self.duration_ms, 2), "phase": self.phase}

        if exc_type is not None:
            logger.error(
                "Phase %s failed after %.1fms: %s",
                self.phase, self.duration_ms, exc_type.__name__,
                extra=extra,
            )
        elif self.duration_ms >= self.threshold_ms:
            logger.warning(
                "Slow phase: %s took %.1fms", self.phase, self.duration_ms,
                extra=extra,
            )
        else:
            logger.debug(
                "Phase %s completed in %.1fms", self.phase, self.duration_ms,
                extra=extra,
            )
