"""Shared rendering surface."""

import logging
from typing import Callable, List, Optional, Protocol

import numpy as np
from PIL import Image

from ..models.scene import FrameSize

logger = logging.getLogger(__name__)

FrameSink = Callable[[float, np.ndarray], None]


class SurfaceOwner(Protocol):
    """Anything that can be told to give up the surface."""

    def cancel(self) -> None:
        ...


class RenderSurface:
    """The single frame buffer that previews paint and encoders read.

    Only one owner may draw at a time; acquiring the surface cancels whoever
    held it before.
    """

    def __init__(self, size: FrameSize) -> None:
        self._image = Image.new("RGBA", size, (0, 0, 0, 255))
        self._owner: Optional[SurfaceOwner] = None
        self._sinks: List[FrameSink] = []
        self._frames_presented = 0
        self._last_timestamp: Optional[float] = None

    @property
    def image(self) -> Image.Image:
        return self._image

    @property
    def size(self) -> FrameSize:
        return FrameSize(*self._image.size)

    @property
    def owner(self) -> Optional[SurfaceOwner]:
        return self._owner

    @property
    def frames_presented(self) -> int:
        return self._frames_presented

    def resize(self, size: FrameSize) -> None:
        """Reallocate the buffer for a new frame size (only when unowned)."""
        if self._owner is not None:
            raise RuntimeError("Cannot resize a surface that is in use")
        if tuple(size) != self._image.size:
            self._image = Image.new("RGBA", size, (0, 0, 0, 255))

    def acquire(self, owner: SurfaceOwner) -> None:
        """Take exclusive ownership, cancelling any previous owner."""
        previous = self._owner
        if previous is not None and previous is not owner:
            logger.info(f"Surface taken over by {type(owner).__name__}, cancelling {type(previous).__name__}")
            self._owner = None
            previous.cancel()
        self._owner = owner
        self._last_timestamp = None

    def release(self, owner: SurfaceOwner) -> None:
        """Give up ownership; ignored if ``owner`` no longer holds the surface."""
        if self._owner is owner:
            self._owner = None

    def subscribe(self, sink: FrameSink) -> None:
        self._sinks.append(sink)

    def unsubscribe(self, sink: FrameSink) -> None:
        if sink in self._sinks:
            self._sinks.remove(sink)

    def present(self, timestamp: float) -> None:
        """Publish the current buffer contents to every subscribed sink.

        Raises:
            ValueError: If timestamps go backwards.
        """
        if self._last_timestamp is not None and timestamp < self._last_timestamp:
            raise ValueError(f"Frame at {timestamp} presented after {self._last_timestamp}")
        self._last_timestamp = timestamp
        self._frames_presented += 1

        if not self._sinks:
            return
        pixels = np.asarray(self._image.convert("RGB"))
        for sink in list(self._sinks):
            sink(timestamp, pixels)

    def snapshot(self) -> Image.Image:
        """Copy of the current frame as RGB."""
        return self._image.convert("RGB")
