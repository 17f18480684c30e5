"""
Timer scheduling for session tickers, debounces and speech delays.
"""
import logging
import threading
from abc import ABC, abstractmethod
from typing import Callable, Optional

logger = logging.getLogger("timers")


class TimerHandle(ABC):
    """A scheduled callback that can be cancelled before it fires."""

    @abstractmethod
    def cancel(self) -> None:
        """Prevent the callback from firing again."""

    @property
    @abstractmethod
    def cancelled(self) -> bool:
        """True once cancel() has been called."""


class Scheduler(ABC):
    """Schedules callbacks on a clock."""

    @abstractmethod
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        """Run callback once after delay seconds."""

    @abstractmethod
    def call_every(self, interval: float, callback: Callable[[], None]) -> TimerHandle:
        """Run callback every interval seconds until cancelled."""


def _run_safely(callback: Callable[[], None]) -> None:
    try:
        callback()
    except Exception as e:
        logger.error("Timer callback %r failed: %s", callback, e)


class _ThreadingHandle(TimerHandle):

    def __init__(self):
        self._cancelled = threading.Event()
        self._timer: Optional[threading.Timer] = None

    def cancel(self) -> None:
        self._cancelled.set()
        if self._timer is not None:
            self._timer.cancel()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()


class ThreadingScheduler(Scheduler):
    """Scheduler backed by daemon threading.Timer instances."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        handle = _ThreadingHandle()

        def fire():
            if not handle.cancelled:
                _run_safely(callback)

        handle._timer = threading.Timer(max(0.0, delay), fire)
        handle._timer.daemon = True
        handle._timer.start()
        return handle

    def call_every(self, interval: float, callback: Callable[[], None]) -> TimerHandle:
        if interval <= 0:
            raise ValueError("interval must be positive")
        handle = _ThreadingHandle()

        def fire():
            if handle.cancelled:
                return
            _run_safely(callback)
            if not handle.cancelled:
                arm()

        def arm():
            handle._timer = threading.Timer(interval, fire)
            handle._timer.daemon = True
            handle._timer.start()

        arm()
        return handle
