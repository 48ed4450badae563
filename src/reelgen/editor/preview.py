"""Live preview loop."""

import logging
from enum import Enum
from typing import Optional

from ..models.scene import Scene
from .camera import camera_at
from .compositor import Compositor
from .scheduler import Handle, Scheduler
from .surface import RenderSurface, SurfaceOwner
from .timeline import Tick, TimelineClock

logger = logging.getLogger(__name__)


class PreviewState(str, Enum):
    """Preview loop state."""
    STOPPED = "stopped"
    RUNNING = "running"


class PreviewLoop:
    """Renders one frame per refresh opportunity until stopped.

    Each tick runs clock, camera and compositor to completion and then asks the
    scheduler for the next frame; ticks never overlap.
    """

    def __init__(
        self,
        surface: RenderSurface,
        scheduler: Scheduler,
        compositor: Optional[Compositor] = None,
        owner: Optional[SurfaceOwner] = None,
    ) -> None:
        """Initialize the loop.

        Args:
            surface: Surface to paint.
            scheduler: Source of refresh callbacks.
            compositor: Frame renderer. Created with default overlays if not provided.
            owner: Surface owner to register as. Defaults to the loop itself.
        """
        self._surface = surface
        self._scheduler = scheduler
        self._compositor = compositor or Compositor()
        self._owner = owner or self
        self._state = PreviewState.STOPPED
        self._handle: Optional[Handle] = None
        self._scene: Optional[Scene] = None
        self._clock: Optional[TimelineClock] = None
        self._last_tick: Optional[Tick] = None
        self._frames = 0

    @property
    def state(self) -> PreviewState:
        return self._state

    @property
    def running(self) -> bool:
        return self._state is PreviewState.RUNNING

    @property
    def frames_rendered(self) -> int:
        return self._frames

    @property
    def last_tick(self) -> Optional[Tick]:
        return self._last_tick

    @property
    def clock(self) -> Optional[TimelineClock]:
        return self._clock

    def start(self, scene: Scene) -> None:
        """Start (or restart) rendering ``scene`` from elapsed time zero."""
        if self.running:
            self.stop()

        self._surface.acquire(self._owner)
        self._scene = scene
        self._clock = TimelineClock(scene.duration_seconds)
        self._clock.start()
        self._last_tick = None
        self._frames = 0
        self._state = PreviewState.RUNNING
        self._handle = self._scheduler.request_frame(self._on_frame)
        logger.debug(f"Preview started ({scene.aspect.value}, {scene.duration_seconds}s)")

    def stop(self) -> None:
        """Stop rendering. Safe to call when already stopped."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        if self._state is PreviewState.STOPPED:
            return
        self._state = PreviewState.STOPPED
        if self._owner is self:
            self._surface.release(self)
        logger.debug(f"Preview stopped after {self._frames} frames")

    def cancel(self) -> None:
        self.stop()

    def _on_frame(self, now: float) -> None:
        if self._state is not PreviewState.RUNNING:
            return

        tick = self._clock.tick(now)
        camera = camera_at(tick.t)
        self._compositor.render(self._surface.image, self._scene, camera, tick.elapsed_seconds, tick.t)
        self._last_tick = tick
        self._frames += 1

        # A sink may stop the loop while the frame is being presented.
        self._surface.present(now)
        if self._state is PreviewState.RUNNING:
            self._handle = self._scheduler.request_frame(self._on_frame)
