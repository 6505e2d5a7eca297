"""Digest scheduler.

A single tick thread drives two phases per tick: threshold alerts for every
active user with a location, then scheduled digests whose owner-local
``time_of_day`` falls inside the match window. Per-user work fans out on a
bounded worker pool; each collaborator call runs on its own thread under a
timeout. Failures are logged and counted and never stop the loop.
"""

import functools
import logging
import threading
import time
from collections import defaultdict
from concurrent.futures import Future, ThreadPoolExecutor, TimeoutError as FuturesTimeoutError, as_completed
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional, Sequence

from src.digest_scheduler.config import SchedulerConfig, SchedulerState
from src.digest_scheduler.matcher import SubscriptionMatcher
from src.digest_scheduler.storage import Storage
from src.logging_config import LogContext, PerformanceTimer, generate_tick_id
from src.weather_alerts.channels.base import DeliveryChannel
from src.weather_alerts.clock import to_local
from src.weather_alerts.cooldown import CooldownTracker
from src.weather_alerts.engine import AlertEngine
from src.weather_alerts.exceptions import SchedulerError
from src.weather_alerts.models import Alert, MetricSample, Subscription, User, _utc_now
from src.weather_alerts.providers.base import WeatherProvider

logger = logging.getLogger(__name__)

ALERT_PHASE = "alerts"
DIGEST_PHASE = "digests"


@dataclass
class DeliveryFailure:
    """One failed step for one user within a tick."""
    user_id: str
    phase: str
    stage: str
    error: str = ""
    channel: str = ""


@dataclass
class UserOutcome:
    """Result of one user's work in one phase."""
    user_id: str
    alerts_triggered: int = 0
    alerts_suppressed: int = 0
    digests_sent: int = 0
    skipped: bool = False
    failures: list[DeliveryFailure] = field(default_factory=list)

    def fail(self, phase: str, stage: str, error: object, channel: str = "") -> None:
        self.failures.append(DeliveryFailure(
            user_id=self.user_id,
            phase=phase,
            stage=stage,
            error=str(error) or type(error).__name__,
            channel=channel,
        ))


@dataclass
class TickReport:
    """Aggregated results of one tick."""
    tick_id: str
    started_at: datetime
    finished_at: Optional[datetime] = None
    users_scanned: int = 0
    alerts_triggered: int = 0
    alerts_suppressed: int = 0
    digests_sent: int = 0
    stopped_early: bool = False
    failures: list[DeliveryFailure] = field(default_factory=list)
    durations_ms: dict[str, float] = field(default_factory=dict)

    def merge(self, outcome: UserOutcome) -> None:
        self.alerts_triggered += outcome.alerts_triggered
        self.alerts_suppressed += outcome.alerts_suppressed
        self.digests_sent += outcome.digests_sent
        self.failures.extend(outcome.failures)

    def failed_users(self, phase: str) -> set[str]:
        return {f.user_id for f in self.failures if f.phase == phase}

    def to_dict(self) -> dict:
        return {
            "tick_id": self.tick_id,
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "users_scanned": self.users_scanned,
            "alerts_triggered": self.alerts_triggered,
            "alerts_suppressed": self.alerts_suppressed,
            "digests_sent": self.digests_sent,
            "failures": len(self.failures),
            "stopped_early": self.stopped_early,
            "durations_ms": {k: round(v, 2) for k, v in self.durations_ms.items()},
        }


class OccurrenceGuard:
    """Remembers the last delivered occurrence per subscription.

    Several ticks can land inside one match window; only the first claim of
    a given (subscription, target) pair succeeds.
    """

    def __init__(self) -> None:
        self._claimed: dict[str, datetime] = {}
        self._lock = threading.Lock()

    def claim(self, subscription_id: str, target: datetime) -> bool:
        with self._lock:
            if self._claimed.get(subscription_id) == target:
                return False
            self._claimed[subscription_id] = target
            return True

    def release(self, subscription_id: str, target: datetime) -> None:
        with self._lock:
            if self._claimed.get(subscription_id) == target:
                del self._claimed[subscription_id]

    def __len__(self) -> int:
        return len(self._claimed)


class DigestScheduler:
    """Periodic alert scan and digest delivery.

    Lifecycle: IDLE -> RUNNING -> STOP_REQUESTED -> STOPPED. ``start`` runs
    the loop on a background thread; ``run_forever`` runs it on the caller's
    thread. ``stop`` is idempotent and waits for the loop to finish;
    ``request_stop`` only sets the flag and is safe from a signal handler.
    """

    def __init__(
        self,
        storage: Storage,
        weather: WeatherProvider,
        channels: Sequence[DeliveryChannel],
        config: Optional[SchedulerConfig] = None,
        engine: Optional[AlertEngine] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.config = config or SchedulerConfig()
        self.config.validate()
        self.storage = storage
        self.weather = weather
        self.channels = list(channels)
        self._clock = clock or _utc_now
        self.engine = engine or AlertEngine(
            cooldown=CooldownTracker(self.config.alert_cooldown_seconds, clock=self._clock)
        )
        self.matcher = SubscriptionMatcher(self.config.match_window_minutes)
        self._guard = OccurrenceGuard()

        self._state = SchedulerState.IDLE
        self._state_lock = threading.Lock()
        self._tick_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._finished = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._loop_thread: Optional[threading.Thread] = None

        self._hung_calls = 0
        self._hung_lock = threading.Lock()

        self._stats_lock = threading.Lock()
        self._stats = {
            "ticks": 0,
            "users_scanned": 0,
            "alerts_triggered": 0,
            "alerts_suppressed": 0,
            "digests_sent": 0,
            "failures": 0,
        }
        self._last_report: Optional[TickReport] = None

    # ── Lifecycle ────────────────────────────────────────────────────

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def stop_requested(self) -> bool:
        return self._stop_event.is_set()

    def start(self) -> None:
        """Start the tick loop on a background thread.

        Raises:
            SchedulerError: If already started or the thread cannot start.
        """
        with self._state_lock:
            if self._state != SchedulerState.IDLE:
                raise SchedulerError(f"Scheduler cannot start from state {self._state.value}")
            thread = threading.Thread(target=self._loop, name="digest-scheduler", daemon=True)
            try:
                thread.start()
            except RuntimeError as exc:
                self._state = SchedulerState.STOPPED
                self._finished.set()
                raise SchedulerError(f"Failed to start scheduler thread: {exc}") from exc
            self._thread = thread
            self._state = SchedulerState.RUNNING

    def run_forever(self) -> None:
        """Run the tick loop on the calling thread until ``stop`` is called."""
        with self._state_lock:
            if self._state != SchedulerState.IDLE:
                raise SchedulerError(f"Scheduler cannot start from state {self._state.value}")
            self._state = SchedulerState.RUNNING
        self._loop()

    def request_stop(self) -> None:
        """Ask the loop to stop without waiting. Safe from signal handlers."""
        with self._state_lock:
            if self._state == SchedulerState.IDLE:
                self._state = SchedulerState.STOPPED
                self._finished.set()
            elif self._state == SchedulerState.RUNNING:
                self._state = SchedulerState.STOP_REQUESTED
                logger.info("Scheduler stop requested")
        self._stop_event.set()

    def stop(self, timeout: Optional[float] = None) -> bool:
        """Request shutdown and wait for the loop to finish.

        Returns:
            True if the scheduler reached STOPPED within ``timeout``.
        """
        self.request_stop()
        if self._loop_thread is threading.current_thread():
            return False
        return self._finished.wait(timeout)

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the loop has finished."""
        return self._finished.wait(timeout)

    def _loop(self) -> None:
        self._loop_thread = threading.current_thread()
        logger.info(
            "Scheduler started (tick every %ss, window %d min, %d channels)",
            self.config.tick_interval_seconds,
            self.config.match_window_minutes,
            len(self.channels),
        )
        try:
            while not self._stop_event.is_set():
                started = time.monotonic()
                try:
                    self.run_tick()
                except Exception:
                    logger.exception("Tick failed")
                # Fixed-rate cadence; an overrunning tick is followed immediately.
                remaining = self.config.tick_interval_seconds - (time.monotonic() - started)
                if self._stop_event.wait(max(remaining, 0)):
                    break
        finally:
            with self._state_lock:
                self._state = SchedulerState.STOPPED
            self._finished.set()
            logger.info("Scheduler stopped")

    # ── Tick ─────────────────────────────────────────────────────────

    def run_tick(self, now: Optional[datetime] = None) -> TickReport:
        """Run one alert phase and one digest phase.

        Args:
            now: Instant used for digest matching. Defaults to the clock.
        """
        with self._tick_lock:
            now = now or self._clock()
            tick_id = generate_tick_id()
            report = TickReport(tick_id=tick_id, started_at=now)

            with LogContext(tick_id=tick_id):
                logger.debug("Tick %s started", tick_id)
                for phase, runner in (
                    (ALERT_PHASE, self._run_alert_phase),
                    (DIGEST_PHASE, self._run_digest_phase),
                ):
                    if self._stop_event.is_set():
                        report.stopped_early = True
                        logger.info("Stop requested, skipping %s phase", phase)
                        continue
                    with PerformanceTimer(phase) as timer:
                        runner(tick_id, now, report)
                    report.durations_ms[phase] = timer.duration_ms

                report.finished_at = self._clock()
                self._record(report)

            return report

    def _record(self, report: TickReport) -> None:
        with self._stats_lock:
            self._stats["ticks"] += 1
            self._stats["users_scanned"] += report.users_scanned
            self._stats["alerts_triggered"] += report.alerts_triggered
            self._stats["alerts_suppressed"] += report.alerts_suppressed
            self._stats["digests_sent"] += report.digests_sent
            self._stats["failures"] += len(report.failures)
            self._last_report = report

        log = logger.warning if report.failures else logger.info
        log(
            "Tick %s: %d users, %d alerts (%d suppressed), %d digests, %d failures",
            report.tick_id,
            report.users_scanned,
            report.alerts_triggered,
            report.alerts_suppressed,
            report.digests_sent,
            len(report.failures),
        )

    # ── Alert phase ──────────────────────────────────────────────────

    def _run_alert_phase(self, tick_id: str, now: datetime, report: TickReport) -> None:
        try:
            users = self.storage.active_users_with_location()
        except Exception:
            logger.exception("Failed to get active users with locations")
            return

        jobs = [
            (user.user_id, functools.partial(self._process_user_alerts, tick_id, user))
            for user in users
        ]
        outcomes = self._fan_out(ALERT_PHASE, jobs)
        for outcome in outcomes:
            if not outcome.skipped:
                report.users_scanned += 1
            report.merge(outcome)

        failed = report.failed_users(ALERT_PHASE)
        if failed:
            logger.warning("Alert phase: %d of %d users had failures", len(failed), len(users))

    def _process_user_alerts(self, tick_id: str, user: User) -> UserOutcome:
        outcome = UserOutcome(user_id=user.user_id)
        if self._stop_event.is_set():
            outcome.skipped = True
            return outcome

        with LogContext(tick_id=tick_id, user_id=user.user_id):
            sample = self._fetch_sample(user, outcome, ALERT_PHASE)
            if sample is None:
                return outcome

            try:
                configs = self.storage.active_alert_configs_for(user.user_id)
            except Exception as exc:
                logger.error("Failed to load alert configs for user %s: %s", user.user_id, exc)
                outcome.fail(ALERT_PHASE, "storage", exc)
                return outcome

            result = self.engine.check_user(user, configs, sample)
            outcome.alerts_triggered = len(result.alerts)
            outcome.alerts_suppressed = result.suppressed

            for alert in result.alerts:
                self._deliver_alert(alert, user, outcome)

            if result.alerts:
                logger.info(
                    "Processed %d weather alerts for %s", len(result.alerts), user.location_name
                )
        return outcome

    def _deliver_alert(self, alert: Alert, user: User, outcome: UserOutcome) -> None:
        failed = self._dispatch(
            ALERT_PHASE,
            outcome,
            lambda channel: functools.partial(channel.send_alert, alert, user),
        )
        if not failed:
            logger.info("Alert %s sent to all channels", alert.alert_id)
        elif len(failed) == len(self.channels):
            logger.error("Alert %s failed on all channels: %s", alert.alert_id, ", ".join(failed))
        else:
            logger.warning(
                "Alert %s partially failed on %s; at least one channel succeeded",
                alert.alert_id, ", ".join(failed),
            )

    # ── Digest phase ─────────────────────────────────────────────────

    def _run_digest_phase(self, tick_id: str, now: datetime, report: TickReport) -> None:
        try:
            subscriptions = self.storage.active_subscriptions()
            users = {u.user_id: u for u in self.storage.active_users_with_location()}
        except Exception:
            logger.exception("Failed to get active subscriptions")
            return

        due: dict[str, list[tuple[Subscription, datetime]]] = defaultdict(list)
        for subscription in subscriptions:
            if not subscription.kind.is_scheduled:
                continue
            user = users.get(subscription.user_id)
            if user is None:
                logger.debug(
                    "Skipping subscription %s: owner %s inactive or without location",
                    subscription.subscription_id, subscription.user_id,
                )
                continue
            local_now = to_local(now, user.timezone)
            target = self.matcher.occurrence(subscription, local_now)
            if target is not None:
                due[user.user_id].append((subscription, target))

        if not due:
            return

        jobs = [
            (user_id, functools.partial(self._process_user_digests, tick_id, users[user_id], items))
            for user_id, items in due.items()
        ]
        for outcome in self._fan_out(DIGEST_PHASE, jobs):
            report.merge(outcome)

        failed = report.failed_users(DIGEST_PHASE)
        if failed:
            logger.warning("Digest phase: %d of %d users had failures", len(failed), len(due))

    def _process_user_digests(
        self,
        tick_id: str,
        user: User,
        items: list[tuple[Subscription, datetime]],
    ) -> UserOutcome:
        outcome = UserOutcome(user_id=user.user_id)
        if self._stop_event.is_set():
            outcome.skipped = True
            return outcome

        with LogContext(tick_id=tick_id, user_id=user.user_id):
            claimed = [
                (sub, target) for sub, target in items
                if self._guard.claim(sub.subscription_id, target)
            ]
            if not claimed:
                return outcome

            sample = self._fetch_sample(user, outcome, DIGEST_PHASE)
            if sample is None:
                # Nothing was sent; a later tick inside the window may retry.
                for sub, target in claimed:
                    self._guard.release(sub.subscription_id, target)
                return outcome

            for subscription, _ in claimed:
                failed = self._dispatch(
                    DIGEST_PHASE,
                    outcome,
                    lambda channel: functools.partial(
                        channel.send_digest, sample, user, subscription.kind
                    ),
                )
                if len(failed) < len(self.channels):
                    outcome.digests_sent += 1
                if failed and len(failed) < len(self.channels):
                    logger.warning(
                        "Some channels failed for %s digest %s but at least one succeeded: %s",
                        subscription.kind.value, subscription.subscription_id, ", ".join(failed),
                    )
                elif failed:
                    logger.error(
                        "All channels failed for %s digest %s",
                        subscription.kind.value, subscription.subscription_id,
                    )
                else:
                    logger.info(
                        "Sent %s digest %s", subscription.kind.value, subscription.subscription_id
                    )
        return outcome

    # ── Collaborator calls ───────────────────────────────────────────

    def _fan_out(
        self,
        phase: str,
        jobs: list[tuple[str, Callable[[], UserOutcome]]],
    ) -> list[UserOutcome]:
        """Run per-user jobs on a bounded pool; one job per user."""
        if not jobs:
            return []

        outcomes: list[UserOutcome] = []
        workers = min(len(jobs), self.config.max_workers)
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix=f"{phase}-worker") as pool:
            futures = {pool.submit(job): user_id for user_id, job in jobs}
            for future in as_completed(futures):
                user_id = futures[future]
                try:
                    outcomes.append(future.result())
                except Exception as exc:
                    logger.exception("Unexpected %s failure for user %s", phase, user_id)
                    outcome = UserOutcome(user_id=user_id)
                    outcome.fail(phase, "internal", exc)
                    outcomes.append(outcome)
        return outcomes

    def _call(self, func: Callable, timeout: float):
        """Run a collaborator call on its own thread, bounded by ``timeout``.

        The timeout starts when the call does, so one hung call never delays
        another. A call that times out keeps running in the background and
        counts against ``max_hung_calls`` until it returns.

        Raises:
            SchedulerError: If too many timed-out calls are still running.
        """
        with self._hung_lock:
            if self._hung_calls >= self.config.max_hung_calls:
                raise SchedulerError(
                    f"{self._hung_calls} timed-out calls still running, refusing new calls"
                )

        future: Future = Future()

        def run() -> None:
            if not future.set_running_or_notify_cancel():
                return
            try:
                future.set_result(func())
            except BaseException as exc:
                future.set_exception(exc)

        threading.Thread(target=run, name="collaborator-call", daemon=True).start()
        try:
            return future.result(timeout=timeout)
        except FuturesTimeoutError:
            with self._hung_lock:
                self._hung_calls += 1
            future.add_done_callback(self._hung_call_finished)
            raise

    def _hung_call_finished(self, future: Future) -> None:
        with self._hung_lock:
            self._hung_calls -= 1

    def _fetch_sample(self, user: User, outcome: UserOutcome, phase: str) -> Optional[MetricSample]:
        location = user.location
        try:
            return self._call(
                functools.partial(self.weather.current_metrics, location.latitude, location.longitude),
                self.config.fetch_timeout_seconds,
            )
        except FuturesTimeoutError:
            logger.error(
                "Weather fetch for %s timed out after %ss",
                location.name, self.config.fetch_timeout_seconds,
            )
            outcome.fail(phase, "fetch", f"timed out after {self.config.fetch_timeout_seconds}s")
        except Exception as exc:
            logger.error("Failed to get weather data for %s: %s", location.name, exc)
            outcome.fail(phase, "fetch", exc)
        return None

    def _dispatch(
        self,
        phase: str,
        outcome: UserOutcome,
        make_call: Callable[[DeliveryChannel], Callable[[], None]],
    ) -> list[str]:
        """Send to every channel in order; return the names of those that failed."""
        failed: list[str] = []
        for channel in self.channels:
            try:
                self._call(make_call(channel), self.config.dispatch_timeout_seconds)
            except FuturesTimeoutError:
                logger.error(
                    "%s send timed out after %ss", channel.name, self.config.dispatch_timeout_seconds
                )
                outcome.fail(phase, "dispatch", "timed out", channel=channel.name)
                failed.append(channel.name)
            except Exception as exc:
                logger.error("Failed to send via %s: %s", channel.name, exc)
                outcome.fail(phase, "dispatch", exc, channel=channel.name)
                failed.append(channel.name)
        return failed

    # ── Introspection ────────────────────────────────────────────────

    @property
    def last_report(self) -> Optional[TickReport]:
        return self._last_report

    def get_stats(self) -> dict:
        """Cumulative counters, lifecycle state, and engine counters."""
        with self._stats_lock:
            stats = dict(self._stats)
            last = self._last_report
        stats["state"] = self._state.value
        stats["last_tick_id"] = last.tick_id if last else None
        stats["claimed_occurrences"] = len(self._guard)
        with self._hung_lock:
            stats["hung_calls"] = self._hung_calls
        stats["engine"] = self.engine.get_stats()
        return stats
