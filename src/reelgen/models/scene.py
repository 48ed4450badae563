"""Scene data model."""

from enum import Enum
from typing import NamedTuple, Optional

from PIL import Image
from pydantic import BaseModel, Field

from ..errors import InvalidScene

MIN_DURATION_SECONDS = 5
MAX_DURATION_SECONDS = 60
DEFAULT_FRAME_WIDTH = 540


class Aspect(str, Enum):
    """Supported Instagram aspect ratios."""
    STORY = "9:16"
    FEED = "4:5"

    @property
    def ratio(self) -> float:
        """Width divided by height."""
        w, h = (int(part) for part in self.value.split(":"))
        return w / h


class FrameSize(NamedTuple):
    """Pixel dimensions of a rendered frame."""
    width: int
    height: int


def frame_size_for(aspect: Aspect, width: int = DEFAULT_FRAME_WIDTH) -> FrameSize:
    """Compute the frame size for an aspect ratio at a fixed width.

    Args:
        aspect: Target aspect ratio.
        width: Frame width in pixels.

    Returns:
        Frame size whose height is ``round(width / ratio)``.
    """
    return FrameSize(width, round(width / Aspect(aspect).ratio))


class Scene(BaseModel):
    """One still image rendered at a given aspect for a given duration."""

    source_image: Optional[Image.Image] = Field(None, description="Decoded source image")
    aspect: Aspect = Field(default=Aspect.STORY, description="Output aspect ratio")
    duration_seconds: int = Field(default=MAX_DURATION_SECONDS, description="Clip duration in seconds")
    frame_width: int = Field(default=DEFAULT_FRAME_WIDTH, description="Output frame width", gt=0)

    class Config:
        """Pydantic config."""
        frozen = False
        arbitrary_types_allowed = True

    @property
    def frame_size(self) -> FrameSize:
        return frame_size_for(self.aspect, self.frame_width)

    def validate_renderable(self) -> None:
        """Check that the scene can be recorded.

        Raises:
            InvalidScene: If the image is missing or the duration is out of range.
        """
        if self.source_image is None:
            raise InvalidScene("No source image loaded")
        width, height = self.source_image.size
        if width <= 0 or height <= 0:
            raise InvalidScene(f"Source image has no pixels: {width}x{height}")
        if not MIN_DURATION_SECONDS <= self.duration_seconds <= MAX_DURATION_SECONDS:
            raise InvalidScene(
                f"Duration must be between {MIN_DURATION_SECONDS} and "
                f"{MAX_DURATION_SECONDS} seconds, got {self.duration_seconds}"
            )

    def snapshot(self) -> "Scene":
        """Return a copy that later edits to this scene do not affect."""
        return self.model_copy()
