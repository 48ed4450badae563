"""Cooperative schedulers that drive frame production.

All callbacks run on one thread, one at a time. Cancelling a handle only
marks it; the callback is dropped when it comes due.
"""

import asyncio
import heapq
import itertools
import logging
import math
from abc import ABC, abstractmethod
from typing import Callable, List, Optional, Protocol, Tuple

logger = logging.getLogger(__name__)

FrameCallback = Callable[[float], None]

DEFAULT_FPS = 30


class Handle(Protocol):
    """A scheduled callback that can be cancelled."""

    def cancel(self) -> None:
        ...


class Scheduler(ABC):
    """Source of time and of frame/timer callbacks."""

    def __init__(self, fps: int = DEFAULT_FPS) -> None:
        if fps <= 0:
            raise ValueError(f"fps must be positive, got {fps}")
        self._fps = fps

    @property
    def fps(self) -> int:
        return self._fps

    @property
    def frame_interval(self) -> float:
        return 1.0 / self._fps

    def next_frame_time(self, now: float) -> float:
        """First instant on the ``1/fps`` grid strictly after ``now``."""
        return (math.floor(now * self._fps + 1e-9) + 1) / self._fps

    @abstractmethod
    def now(self) -> float:
        """Current instant in seconds."""
        ...

    @abstractmethod
    def request_frame(self, callback: FrameCallback) -> Handle:
        """Call ``callback(timestamp)`` at the next refresh opportunity."""
        ...

    @abstractmethod
    def call_later(self, delay: float, callback: Callable[[], None]) -> Handle:
        """Call ``callback()`` after ``delay`` seconds."""
        ...

    @abstractmethod
    def call_soon(self, callback: Callable[[], None]) -> Handle:
        """Call ``callback()`` on the next turn, after the current one completes."""
        ...


class ScheduledCall:
    """Handle for a callback queued on a :class:`VirtualScheduler`."""

    def __init__(self, when: float, callback: Callable[[], None]) -> None:
        self.when = when
        self._callback = callback
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True

    def run(self) -> None:
        if not self._cancelled:
            self._callback()


class VirtualScheduler(Scheduler):
    """Deterministic scheduler with simulated time.

    Frames land exactly on the ``1/fps`` grid, so a recording produced with it
    is frame-accurate and independent of how long rendering takes.
    """

    def __init__(self, fps: int = DEFAULT_FPS, start: float = 0.0) -> None:
        super().__init__(fps)
        self._now = start
        self._queue: List[Tuple[float, int, ScheduledCall]] = []
        self._counter = itertools.count()

    def now(self) -> float:
        return self._now

    @property
    def pending(self) -> int:
        """Number of live callbacks still queued."""
        return sum(1 for _, _, call in self._queue if not call.cancelled)

    def _schedule(self, when: float, callback: Callable[[], None]) -> ScheduledCall:
        call = ScheduledCall(when, callback)
        heapq.heappush(self._queue, (when, next(self._counter), call))
        return call

    def request_frame(self, callback: FrameCallback) -> ScheduledCall:
        when = self.next_frame_time(self._now)
        return self._schedule(when, lambda: callback(when))

    def call_later(self, delay: float, callback: Callable[[], None]) -> ScheduledCall:
        return self._schedule(self._now + max(delay, 0.0), callback)

    def call_soon(self, callback: Callable[[], None]) -> ScheduledCall:
        return self._schedule(self._now, callback)

    def step(self) -> bool:
        """Run the next due callback.

        Returns:
            False when nothing is left to run.
        """
        while self._queue:
            when, _, call = heapq.heappop(self._queue)
            if call.cancelled:
                continue
            self._now = max(self._now, when)
            call.run()
            return True
        return False

    def run_until(self, predicate: Callable[[], bool], timeout: Optional[float] = None) -> bool:
        """Run callbacks until ``predicate()`` holds.

        Args:
            predicate: Stop condition, checked after every callback.
            timeout: Simulated seconds after which to give up.

        Returns:
            Whether the predicate became true.
        """
        deadline = None if timeout is None else self._now + timeout
        while not predicate():
            if deadline is not None and self._queue and self._queue[0][0] > deadline:
                self._now = deadline
                return False
            if not self.step():
                return predicate()
        return True

    def advance(self, seconds: float) -> None:
        """Run everything due within the next ``seconds`` of simulated time."""
        deadline = self._now + seconds
        while self._queue and self._queue[0][0] <= deadline:
            self.step()
        self._now = deadline


class AsyncioScheduler(Scheduler):
    """Wall-clock scheduler on an asyncio event loop.

    Frame callbacks fire on the same ``1/fps`` grid as :class:`VirtualScheduler`
    and receive the grid instant as their timestamp.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None, fps: int = DEFAULT_FPS) -> None:
        super().__init__(fps)
        self._loop = loop or asyncio.get_running_loop()
        self._last_frame_at = float("-inf")

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return self._loop

    def now(self) -> float:
        return self._loop.time()

    def request_frame(self, callback: FrameCallback) -> asyncio.TimerHandle:
        # Late frames skip grid slots rather than shift the grid. asyncio may
        # fire a timer slightly early, so never reuse the last fired slot.
        when = self.next_frame_time(max(self._loop.time(), self._last_frame_at))

        def fire() -> None:
            self._last_frame_at = when
            callback(when)

        return self._loop.call_at(when, fire)

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return self._loop.call_later(max(delay, 0.0), callback)

    def call_soon(self, callback: Callable[[], None]) -> asyncio.Handle:
        return self._loop.call_soon(callback)
