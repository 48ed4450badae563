"""Session timeline: elapsed time and normalized progress."""

from dataclasses import dataclass
from typing import Optional

from ..errors import RenderPrecondition


@dataclass(frozen=True)
class Tick:
    """Position on the timeline for one frame."""

    t: float
    elapsed_seconds: float


class TimelineClock:
    """Converts frame instants into progress over a fixed duration.

    The first tick after ``start()`` latches the start instant, so the first
    rendered frame is always at elapsed time zero.
    """

    def __init__(self, duration_seconds: float) -> None:
        if duration_seconds <= 0:
            raise ValueError(f"Duration must be positive, got {duration_seconds}")
        self._duration = float(duration_seconds)
        self._started = False
        self._start_instant: Optional[float] = None

    @property
    def duration_seconds(self) -> float:
        return self._duration

    @property
    def start_instant(self) -> Optional[float]:
        return self._start_instant

    @property
    def started(self) -> bool:
        return self._started

    def start(self) -> None:
        """Arm the clock; the next tick becomes the start instant."""
        self._started = True
        self._start_instant = None

    def reset(self) -> None:
        """Forget the start instant and disarm the clock."""
        self._started = False
        self._start_instant = None

    def tick(self, now: float) -> Tick:
        """Compute the timeline position at ``now``.

        Args:
            now: Current instant in seconds.

        Returns:
            Normalized progress and raw elapsed seconds.

        Raises:
            RenderPrecondition: If the clock was never started.
        """
        if not self._started:
            raise RenderPrecondition("TimelineClock ticked before start()")

        if self._start_instant is None:
            self._start_instant = now

        elapsed = now - self._start_instant
        t = min(max(elapsed / self._duration, 0.0), 1.0)
        return Tick(t=t, elapsed_seconds=elapsed)
