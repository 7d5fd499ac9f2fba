"""Scheduled dashboard refresh with explicit cancellation."""
from typing import Callable, Optional
import logging
import threading

logger = logging.getLogger(__name__)


class RefreshScheduler:
    """
    Call ``refresh`` every ``interval`` seconds on a background thread.

    ``cancel()`` stops the schedule and is safe to call more than once; use it
    (or the context manager) when the view is torn down. A failing refresh is
    logged and the schedule continues.
    """

    def __init__(self, refresh: Callable[[], None], interval: float = 30.0, run_immediately: bool = True):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.refresh = refresh
        self.interval = interval
        self.run_immediately = run_immediately
        self._stop: Optional[threading.Event] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> "RefreshScheduler":
        if self.running and not self._stop.is_set():
            return self
        # Each run owns its stop event; a thread left over from a timed-out
        # cancel keeps seeing its own event set and exits.
        self._stop = threading.Event()
        self._thread = threading.Thread(
            target=self._run, args=(self._stop,), name="dashboard-refresh", daemon=True
        )
        self._thread.start()
        return self

    def cancel(self, timeout: Optional[float] = None) -> None:
        if self._stop is not None:
            self._stop.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
            if thread.is_alive():
                logger.warning("Dashboard refresh still running after cancel")
        self._thread = None

    def _run(self, stop: threading.Event) -> None:
        if self.run_immediately:
            self._tick()
        while not stop.wait(self.interval):
            self._tick()

    def _tick(self) -> None:
        try:
            self.refresh()
        except Exception as e:
            logger.error(f"Dashboard refresh failed: {str(e)}")

    def __enter__(self) -> "RefreshScheduler":
        return self.start()

    def __exit__(self, *exc_info) -> None:
        self.cancel()
