"""Digest Scheduler.

Periodic threshold-alert scanning and timezone-correct daily/weekly digest
delivery across outbound channels.

Example:
    from src.digest_scheduler import DigestScheduler, InMemoryStorage, SchedulerConfig

    scheduler = DigestScheduler(
        storage=InMemoryStorage(),
        weather=provider,
        channels=[telegram, slack],
        config=SchedulerConfig(tick_interval_seconds=60),
    )
    scheduler.start()
    ...
    scheduler.stop(timeout=30)
"""

from src.digest_scheduler.config import (
    SchedulerConfig,
    SchedulerState,
    Settings,
    load_settings,
)
from src.digest_scheduler.storage import Storage, InMemoryStorage
from src.digest_scheduler.matcher import SubscriptionMatcher, parse_time_of_day
from src.digest_scheduler.scheduler import (
    DigestScheduler,
    DeliveryFailure,
    OccurrenceGuard,
    TickReport,
    UserOutcome,
)
from src.digest_scheduler.shutdown import ShutdownSignals
from src.digest_scheduler.service import (
    build_channels,
    build_scheduler,
    close_collaborators,
    run_service,
)

__all__ = [
    # Config
    "SchedulerConfig",
    "SchedulerState",
    "Settings",
    "load_settings",
    # Storage
    "Storage",
    "InMemoryStorage",
    # Matching
    "SubscriptionMatcher",
    "parse_time_of_day",
    # Scheduler
    "DigestScheduler",
    "DeliveryFailure",
    "OccurrenceGuard",
    "TickReport",
    "UserOutcome",
    # Service
    "ShutdownSignals",
    "build_channels",
    "build_scheduler",
    "close_collaborators",
    "run_service",
]
