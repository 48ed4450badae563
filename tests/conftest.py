"""
Pytest fixtures for reelgen tests.

Recording tests run on a VirtualScheduler, so a 60 second session finishes
instantly and frame timestamps are exact. Encoders and compositors are
replaced with in-memory fakes where real pixels or ffmpeg are not the subject
of the test.
"""

from typing import List, Optional, Tuple

import numpy as np
import pytest
from PIL import Image

from reelgen.editor import Compositor, RenderSurface, VirtualScheduler
from reelgen.editor.camera import CameraState
from reelgen.editor.encoder import Encoder
from reelgen.errors import EncoderFailed, EncoderUnavailable
from reelgen.models import Aspect, FrameSize, Scene


class FakeEncoder(Encoder):
    """Encoder that keeps frame timestamps and returns canned bytes.

    Grid placement comes from the real ``Encoder`` base, so ``frames_written``
    counts encoded slots including repeats while ``timestamps`` holds every
    frame the session delivered.
    """

    def __init__(
        self,
        mime_type: str = "video/webm;codecs=vp9",
        open_error: bool = False,
        fail_at_frame: Optional[int] = None,
        finalize_error: bool = False,
    ) -> None:
        super().__init__()
        self.mime_type = mime_type
        self.open_error = open_error
        self.fail_at_frame = fail_at_frame
        self.finalize_error = finalize_error
        self.opened_with: Optional[Tuple[FrameSize, int]] = None
        self.timestamps: List[float] = []
        self.finalized = False
        self.aborted = False

    def _open(self, size: FrameSize, fps: int) -> None:
        if self.open_error:
            raise EncoderUnavailable("fake encoder refuses to open")
        self.opened_with = (size, fps)

    def write_frame(self, timestamp: float, frame: np.ndarray) -> None:
        if self.fail_at_frame is not None and len(self.timestamps) >= self.fail_at_frame:
            raise EncoderFailed("fake encoder broke")
        self.timestamps.append(timestamp)
        super().write_frame(timestamp, frame)

    def _write(self, timestamp: float, frame: np.ndarray) -> None:
        pass

    def _finalize(self) -> bytes:
        if self.finalize_error:
            raise EncoderFailed("fake finalize failed")
        self.finalized = True
        return b"WEBM" + self.frames_written.to_bytes(4, "big")

    def _abort(self) -> None:
        self.aborted = True
        self.timestamps = []


class RecordingCompositor(Compositor):
    """Compositor that only records what it was asked to draw."""

    def __init__(self) -> None:
        super().__init__(overlays=[])
        self.calls: List[Tuple[float, float, CameraState]] = []

    def render(self, buffer, scene, camera, elapsed_seconds, progress=0.0) -> None:
        self.calls.append((elapsed_seconds, progress, camera))


def make_image(size: Tuple[int, int] = (800, 600), color=(200, 40, 40)) -> Image.Image:
    return Image.new("RGB", size, color)


@pytest.fixture
def fake_encoder_cls():
    return FakeEncoder


@pytest.fixture
def fake_encoder() -> FakeEncoder:
    return FakeEncoder()


@pytest.fixture
def recording_compositor() -> RecordingCompositor:
    return RecordingCompositor()


@pytest.fixture
def scheduler() -> VirtualScheduler:
    return VirtualScheduler(fps=30)


@pytest.fixture
def source_image() -> Image.Image:
    return make_image()


@pytest.fixture
def scene(source_image) -> Scene:
    return Scene(source_image=source_image, aspect=Aspect.STORY, duration_seconds=60)


@pytest.fixture
def surface(scene) -> RenderSurface:
    return RenderSurface(scene.frame_size)


@pytest.fixture
def image_file(tmp_path):
    path = tmp_path / "family.png"
    make_image((640, 480), (30, 120, 200)).save(path)
    return path
