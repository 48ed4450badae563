"""Session control surface used by the UI layer."""

import logging
from pathlib import Path
from typing import Callable, List, Optional, Union

from PIL import Image, ImageOps

from ..config import config
from ..errors import InvalidScene
from ..models.artifact import RecordingArtifact
from ..models.overlay import PromoCopy, build_overlays
from ..models.scene import Aspect, Scene
from .compositor import Compositor
from .encoder import Encoder, FFmpegEncoder
from .preview import PreviewLoop
from .scheduler import Scheduler
from .session import TERMINAL_STATES, RecordingSession, SessionState
from .surface import RenderSurface

logger = logging.getLogger(__name__)

EncoderFactory = Callable[[], Encoder]


def load_image(path: Path) -> Image.Image:
    """Decode an image file, applying its EXIF orientation.

    Raises:
        FileNotFoundError: If the image file doesn't exist.
    """
    if not path.exists():
        raise FileNotFoundError(f"Image not found: {path}")
    with Image.open(path) as img:
        img = ImageOps.exif_transpose(img)
        return img.convert("RGB")


class Studio:
    """Owns the scene, surface and sessions behind the four control buttons.

    ``start_preview``/``stop_preview`` drive a standalone preview loop;
    ``start_recording``/``stop_recording`` create a fresh
    :class:`RecordingSession` each time. The latest finished artifact is kept
    until a newer recording succeeds.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        scene: Optional[Scene] = None,
        promo: Optional[PromoCopy] = None,
        encoder_factory: Optional[EncoderFactory] = None,
        compositor: Optional[Compositor] = None,
    ) -> None:
        self._scheduler = scheduler
        self._scene = scene or Scene(frame_width=config.frame_width)
        self._compositor = compositor or Compositor(build_overlays(promo))
        self._encoder_factory = encoder_factory or (
            lambda: FFmpegEncoder(config.mime_type, bitrate=config.bitrate)
        )
        self._surface = RenderSurface(self._scene.frame_size)
        self._preview = PreviewLoop(self._surface, scheduler, self._compositor)
        self._session: Optional[RecordingSession] = None
        self._artifact: Optional[RecordingArtifact] = None
        self._superseded_images: List[Image.Image] = []

    @property
    def scene(self) -> Scene:
        return self._scene

    @property
    def surface(self) -> RenderSurface:
        return self._surface

    @property
    def preview(self) -> PreviewLoop:
        return self._preview

    @property
    def session(self) -> Optional[RecordingSession]:
        return self._session

    @property
    def artifact(self) -> Optional[RecordingArtifact]:
        return self._artifact

    @property
    def recording(self) -> bool:
        return self._session is not None and self._session.state in (
            SessionState.PREVIEWING,
            SessionState.RECORDING,
            SessionState.FINALIZING,
        )

    def configure(self, aspect: Union[Aspect, str, None] = None, duration_seconds: Optional[int] = None) -> None:
        """Apply form settings. Takes effect for the next preview or recording."""
        if aspect is not None:
            self._scene.aspect = Aspect(aspect)
        if duration_seconds is not None:
            self._scene.duration_seconds = duration_seconds

    def on_scene_ready(self, image: Image.Image) -> None:
        """Hook for the UI once an image has been decoded; starts a preview.

        The previous image is closed right away, or once the running recording
        that still renders it finishes. A finished artifact that belongs to the
        old image is released.
        """
        previous = self._scene.source_image
        if previous is not None and previous is not image:
            if self.recording:
                self._superseded_images.append(previous)
            else:
                previous.close()
        self._scene.source_image = image
        self._release_artifact()
        if not self.recording:
            self.start_preview()

    def start_preview(self) -> bool:
        """Start or restart the live preview.

        Returns:
            False if a recording is in progress or the scene cannot be
            rendered (no image yet, duration out of range).
        """
        if self.recording:
            return False
        try:
            self._scene.validate_renderable()
        except InvalidScene as e:
            logger.warning(f"Preview not started: {e}")
            return False
        self._preview.stop()
        self._prepare_surface()
        self._preview.start(self._scene.snapshot())
        return True

    def stop_preview(self) -> None:
        self._preview.stop()

    def start_recording(self) -> RecordingSession:
        """Start a fresh recording session.

        Returns:
            The new session, already recording or errored.

        Raises:
            InvalidScene: If the scene cannot be recorded; the previous
                artifact is left untouched.
        """
        self._scene.validate_renderable()
        if self.recording:
            self._session.cancel()
        self._preview.stop()
        self._prepare_surface()

        session = RecordingSession(
            self._surface,
            self._scheduler,
            encoder=self._encoder_factory(),
            compositor=self._compositor,
        )
        session.on_state_change(self._on_session_state)
        self._session = session
        session.start(self._scene)
        return session

    def stop_recording(self) -> None:
        """Stop the active recording early. No-op when nothing is recording."""
        if self._session is not None and self._session.state is SessionState.RECORDING:
            self._session.stop()

    def _prepare_surface(self) -> None:
        size = self._scene.frame_size
        if tuple(size) != tuple(self._surface.size):
            self._surface.resize(size)

    def _on_session_state(self, session: RecordingSession, state: SessionState) -> None:
        if session is not self._session or state not in TERMINAL_STATES:
            return
        self._close_superseded_images()
        if state is not SessionState.READY:
            return
        self._release_artifact()
        self._artifact = session.artifact
        logger.info(
            f"Artifact ready: {self._artifact.suggested_file_name} "
            f"({self._artifact.size} bytes, {self._artifact.frame_count} frames)"
        )

    def _close_superseded_images(self) -> None:
        current = self._scene.source_image
        for image in self._superseded_images:
            if image is not current:
                image.close()
        self._superseded_images = []

    def _release_artifact(self) -> None:
        if self._artifact is not None:
            self._artifact.release()
            self._artifact = None
