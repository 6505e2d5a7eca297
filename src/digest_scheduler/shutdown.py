"""Signal wiring for graceful scheduler shutdown."""

import logging
import signal
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)

DEFAULT_SIGNALS = (signal.SIGTERM, signal.SIGINT)


class ShutdownSignals:
    """Routes SIGTERM/SIGINT to shutdown callbacks.

    The first signal runs every registered callback once. Repeated signals
    are counted and logged; callbacks are not re-run.
    """

    def __init__(self) -> None:
        self._requested = threading.Event()
        self._callbacks: list[Callable[[], None]] = []
        self._original_handlers: dict[int, object] = {}
        self._signal_count = 0

    @property
    def shutdown_requested(self) -> bool:
        return self._requested.is_set()

    @property
    def signal_count(self) -> int:
        return self._signal_count

    def on_shutdown(self, callback: Callable[[], None]) -> None:
        """Register a callback to run when the first shutdown signal arrives."""
        self._callbacks.append(callback)

    def _handle(self, signum: int, frame) -> None:
        self._signal_count += 1
        logger.warning(
            "Received signal %s (%d)", signal.Signals(signum).name, self._signal_count
        )
        self.trigger()

    def trigger(self) -> None:
        """Run shutdown callbacks as if a signal had arrived."""
        if self._requested.is_set():
            return
        self._requested.set()
        for callback in self._callbacks:
            try:
                callback()
            except Exception as exc:
                logger.error("Shutdown callback failed: %s", exc)

    def install(self, signals: Optional[tuple[int, ...]] = None) -> list[int]:
        """Install handlers; return the signals actually registered.

        Registration fails off the main thread; such signals are skipped
        with a warning.
        """
        installed = []
        for sig in signals or DEFAULT_SIGNALS:
            try:
                self._original_handlers[sig] = signal.getsignal(sig)
                signal.signal(sig, self._handle)
                installed.append(sig)
            except (OSError, ValueError) as exc:
                self._original_handlers.pop(sig, None)
                logger.warning("Cannot register handler for signal %d: %s", sig, exc)
        return installed

    def restore(self) -> None:
        """Restore the handlers that were active before ``install``."""
        for sig, handler in self._original_handlers.items():
            try:
                signal.signal(sig, handler if handler is not None else signal.SIG_DFL)
            except (OSError, ValueError) as exc:
                logger.warning("Cannot restore handler for signal %d: %s", sig, exc)
        self._original_handlers.clear()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until shutdown is requested or the timeout expires."""
        return self._requested.wait(timeout)
