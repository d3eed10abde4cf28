"""Match clock service for the Rugby Scoring application."""

import logging
import threading
from typing import Callable, Optional, Protocol

from .errors import MatchStateError
from ..models import Match
from ..utils import CLOCK_TICK_SECONDS, fmt_match_clock

logger = logging.getLogger(__name__)


class Ticker(Protocol):
    """Periodic scheduler driving the match clock."""

    def start(self, callback: Callable[[], None]) -> None:
        ...

    def stop(self) -> None:
        ...

    @property
    def active(self) -> bool:
        ...


class ThreadTicker:
    """Calls the callback once per interval on a daemon thread."""

    def __init__(self, interval: float = CLOCK_TICK_SECONDS, name: str = "match-clock"):
        self.interval = interval
        self.name = name
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def active(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self, callback: Callable[[], None]) -> None:
        if self.active:
            return
        self._stop_event = threading.Event()
        stop_event = self._stop_event

        def _run() -> None:
            while not stop_event.wait(self.interval):
                callback()

        self._thread = threading.Thread(target=_run, name=self.name, daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop_event.set()
        thread = self._thread
        self._thread = None
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=self.interval * 2)


class ManualTicker:
    """Ticker fired explicitly, for tests and replay tools."""

    def __init__(self):
        self._callback: Optional[Callable[[], None]] = None

    @property
    def active(self) -> bool:
        return self._callback is not None

    def start(self, callback: Callable[[], None]) -> None:
        self._callback = callback

    def stop(self) -> None:
        self._callback = None

    def fire(self, times: int = 1) -> None:
        """Deliver ``times`` ticks while the ticker is started."""
        for _ in range(times):
            if self._callback is None:
                return
            self._callback()


class TimerService:
    """
    Service for the match clock.

    The clock only advances while the match is live and the running flag is
    on; every other combination freezes it. The ticker is started and stopped
    together with the running flag, so at most one ticker drives a match.
    """

    def __init__(self, match: Match, ticker: Optional[Ticker] = None):
        self.match = match
        self.ticker: Ticker = ticker if ticker is not None else ThreadTicker()
        self._lock = threading.Lock()
        # A stored running flag is only meaningful while live
        if not self.match.is_live():
            self.match.timer_running = False
        elif self.match.timer_running:
            self.ticker.start(self.tick)

    # ------------------------------------------------------------------
    # Clock controls
    # ------------------------------------------------------------------
    def tick(self) -> bool:
        """Advance the clock by one second if allowed. Returns True when it moved."""
        with self._lock:
            if not (self.match.is_live() and self.match.timer_running):
                return False
            self.match.elapsed_seconds += 1
            return True

    def start(self) -> None:
        """Set the clock running and start the ticker."""
        with self._lock:
            self.match.timer_running = True
        self.ticker.start(self.tick)

    def stop(self) -> None:
        """Freeze the clock and stop the ticker."""
        with self._lock:
            self.match.timer_running = False
        self.ticker.stop()

    def toggle(self) -> bool:
        """
        Flip the running flag. Only allowed while the match is live.

        Returns:
            The new running state

        Raises:
            MatchStateError: If the match is not live
        """
        if not self.match.is_live():
            raise MatchStateError("The match clock can only run while the match is live")
        if self.match.timer_running:
            self.stop()
        else:
            self.start()
        logger.info(
            "Match %s clock %s at %s",
            self.match.id, "started" if self.match.timer_running else "paused", self.formatted(),
        )
        return self.match.timer_running

    # ------------------------------------------------------------------
    # Query helpers
    # ------------------------------------------------------------------
    @property
    def running(self) -> bool:
        return self.match.timer_running

    @property
    def elapsed_seconds(self) -> int:
        return self.match.elapsed_seconds

    def formatted(self) -> str:
        return fmt_match_clock(self.match.elapsed_seconds)
