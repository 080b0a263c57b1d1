"""Cancellable timers for the order engine.

The engine runs on a single logical thread. Emission uses single-shot
timers that are re-armed after each order; the day rollover check uses a
periodic timer. ``ManualScheduler`` provides virtual time for tests and
fast-forward simulation.
"""

import asyncio
import heapq
import itertools
from abc import ABC, abstractmethod
from datetime import timedelta
from typing import Callable, Optional

from runvault.clock import ManualClock


class Timer(ABC):
    """Handle to a scheduled callback."""

    @abstractmethod
    def cancel(self) -> None:
        """Prevent any further firing. Safe to call more than once."""
        pass

    @property
    @abstractmethod
    def cancelled(self) -> bool:
        pass


class Scheduler(ABC):
    """Creates cancellable delayed and periodic callbacks."""

    @abstractmethod
    def call_later(self, delay: float, callback: Callable[[], None]) -> Timer:
        """Run ``callback`` once after ``delay`` seconds."""
        pass

    @abstractmethod
    def call_every(self, period: float, callback: Callable[[], None]) -> Timer:
        """Run ``callback`` every ``period`` seconds until cancelled."""
        pass


# ==================== asyncio ====================


class _AsyncioTimer(Timer):
    def __init__(self):
        self._handle: Optional[asyncio.TimerHandle] = None
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class AsyncioScheduler(Scheduler):
    """Scheduler backed by an asyncio event loop.

    Args:
        loop: Loop to schedule on. Defaults to the running loop, so build
            the scheduler inside a coroutine when omitting it.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop or asyncio.get_running_loop()

    def call_later(self, delay: float, callback: Callable[[], None]) -> Timer:
        timer = _AsyncioTimer()

        def fire() -> None:
            timer._handle = None
            if not timer.cancelled:
                callback()

        timer._handle = self._loop.call_later(delay, fire)
        return timer

    def call_every(self, period: float, callback: Callable[[], None]) -> Timer:
        timer = _AsyncioTimer()

        def fire() -> None:
            if timer.cancelled:
                return
            timer._handle = self._loop.call_later(period, fire)
            callback()

        timer._handle = self._loop.call_later(period, fire)
        return timer


# ==================== Virtual time ====================


class _ManualTimer(Timer):
    def __init__(self, due: float, callback: Callable[[], None], period: Optional[float]):
        self.due = due
        self.callback = callback
        self.period = period
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class ManualScheduler(Scheduler):
    """Virtual-time scheduler.

    Nothing fires until :meth:`advance` is called. Due callbacks fire in
    time order and the attached clock is moved to each callback's due time
    before it runs.

    Args:
        clock: Clock to drive. A new ManualClock is created if omitted.
    """

    def __init__(self, clock: Optional[ManualClock] = None):
        self.clock = clock or ManualClock()
        self._elapsed = 0.0
        self._queue: list[tuple[float, int, _ManualTimer]] = []
        self._seq = itertools.count()

    @property
    def elapsed(self) -> float:
        """Virtual seconds since the scheduler was created."""
        return self._elapsed

    def _push(self, timer: _ManualTimer) -> None:
        heapq.heappush(self._queue, (timer.due, next(self._seq), timer))

    def call_later(self, delay: float, callback: Callable[[], None]) -> Timer:
        timer = _ManualTimer(self._elapsed + max(0.0, delay), callback, None)
        self._push(timer)
        return timer

    def call_every(self, period: float, callback: Callable[[], None]) -> Timer:
        if period <= 0:
            raise ValueError("Period must be positive")
        timer = _ManualTimer(self._elapsed + period, callback, period)
        self._push(timer)
        return timer

    def pending(self) -> int:
        """Number of live (not cancelled) timers."""
        return sum(1 for _, _, timer in self._queue if not timer.cancelled)

    def advance(self, seconds: float) -> int:
        """Move virtual time forward, firing everything that falls due.

        Returns:
            Number of callbacks fired.
        """
        target = self._elapsed + seconds
        fired = 0
        while self._queue and self._queue[0][0] <= target:
            due, _, timer = heapq.heappop(self._queue)
            if timer.cancelled:
                continue
            self._move_to(due)
            if timer.period is not None:
                timer.due = due + timer.period
                self._push(timer)
            timer.callback()
            fired += 1
        self._move_to(target)
        return fired

    def _move_to(self, when: float) -> None:
        delta = when - self._elapsed
        if delta > 0:
            self.clock.set(self.clock.now() + timedelta(seconds=delta))
            self._elapsed = when
