"""Tick sources for the match clock.

The engine starts a ticker when the clock starts running and stops it when
the clock stops; stopping cancels the pending tick instead of pausing it.
"""

import logging
import threading
from typing import Callable, Optional, Protocol

logger = logging.getLogger(__name__)

TICK_SECONDS = 1.0


class Ticker(Protocol):
    """Periodic callback source."""

    def start(self, callback: Callable[[], None]) -> None: ...

    def stop(self) -> None: ...


class IntervalTicker:
    """Calls ``callback`` every ``interval`` seconds on a daemon timer thread.

    No drift correction: each tick re-arms a new timer after the callback.
    """

    def __init__(self, interval: float = TICK_SECONDS):
        self.interval = interval
        self._callback: Optional[Callable[[], None]] = None
        self._timer: Optional[threading.Timer] = None
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._timer is not None

    def start(self, callback: Callable[[], None]) -> None:
        with self._lock:
            self._callback = callback
            if self._timer is None:
                self._arm()

    def stop(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    def _arm(self) -> None:
        self._timer = threading.Timer(self.interval, self._fire)
        self._timer.daemon = True
        self._timer.start()

    def _fire(self) -> None:
        # Runs on the Timer thread; only the currently armed timer may tick or re-arm
        fired = threading.current_thread()
        with self._lock:
            if self._timer is not fired:
                return
            callback = self._callback
        try:
            callback()
        except Exception:
            logger.exception("Match clock tick failed")
        with self._lock:
            if self._timer is fired:
                self._arm()


class ManualTicker:
    """Ticker driven by hand: ``fire()`` runs one tick if started."""

    def __init__(self):
        self._callback: Optional[Callable[[], None]] = None
        self.starts = 0
        self.stops = 0

    @property
    def running(self) -> bool:
        return self._callback is not None

    def start(self, callback: Callable[[], None]) -> None:
        if self._callback is None:
            self.starts += 1
        self._callback = callback

    def stop(self) -> None:
        if self._callback is not None:
            self.stops += 1
        self._callback = None

    def fire(self, times: int = 1) -> None:
        for _ in range(times):
            if self._callback is None:
                return
            self._callback()
