"""Bounded-duration recording session."""

import logging
from enum import Enum
from typing import Callable, List, Optional

import numpy as np

from ..config import config
from ..errors import (
    EncoderFailed,
    EncoderUnavailable,
    InvalidScene,
    ReelError,
    SessionCancelled,
    SessionStateError,
)
from ..models.artifact import RecordingArtifact
from ..models.scene import Scene
from .compositor import Compositor
from .encoder import Encoder, FFmpegEncoder, extension_for
from .preview import PreviewLoop
from .scheduler import Handle, Scheduler
from .surface import RenderSurface

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    """Recording session lifecycle."""
    IDLE = "idle"
    PREVIEWING = "previewing"
    RECORDING = "recording"
    FINALIZING = "finalizing"
    READY = "ready"
    ERRORED = "errored"


TERMINAL_STATES = frozenset({SessionState.READY, SessionState.ERRORED})

StateListener = Callable[["RecordingSession", SessionState], None]


def suggested_file_name(aspect: str, mime_type: str, prefix: Optional[str] = None) -> str:
    """Download name for a recording, e.g. ``deen-ply-instagram-9:16.webm``."""
    prefix = prefix or config.file_prefix
    return f"{prefix}-{aspect}{extension_for(mime_type)}"


class RecordingSession:
    """Captures one scene into an encoded clip.

    Lifecycle::

        IDLE -> PREVIEWING -> RECORDING -> FINALIZING -> READY
                      \\            \\            \\
                       +------------+------------+--> ERRORED

    The session owns its preview loop, encoder and timeline. It stops itself
    after the scene's duration; ``stop()`` before then truncates the clip.
    """

    def __init__(
        self,
        surface: RenderSurface,
        scheduler: Scheduler,
        encoder: Optional[Encoder] = None,
        compositor: Optional[Compositor] = None,
        file_prefix: Optional[str] = None,
    ) -> None:
        """Initialize the session.

        Args:
            surface: Rendering surface to paint and capture.
            scheduler: Source of frame and timer callbacks.
            encoder: Frame consumer. Defaults to an ffmpeg encoder for the
                configured mime type.
            compositor: Frame renderer shared with the preview loop.
            file_prefix: Prefix for the suggested file name.
        """
        self._surface = surface
        self._scheduler = scheduler
        self._encoder = encoder or FFmpegEncoder(config.mime_type, bitrate=config.bitrate)
        self._preview = PreviewLoop(surface, scheduler, compositor, owner=self)
        self._file_prefix = file_prefix

        self._state = SessionState.IDLE
        self._scene: Optional[Scene] = None
        self._artifact: Optional[RecordingArtifact] = None
        self._error: Optional[ReelError] = None
        self._stop_timer: Optional[Handle] = None
        self._finalize_handle: Optional[Handle] = None
        self._listeners: List[StateListener] = []

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def artifact(self) -> Optional[RecordingArtifact]:
        return self._artifact

    @property
    def error(self) -> Optional[ReelError]:
        return self._error

    @property
    def scene(self) -> Optional[Scene]:
        return self._scene

    @property
    def preview(self) -> PreviewLoop:
        return self._preview

    @property
    def frames_captured(self) -> int:
        return self._encoder.frames_written

    def on_state_change(self, listener: StateListener) -> None:
        """Register ``listener(session, new_state)`` for every transition."""
        self._listeners.append(listener)

    def start(self, scene: Scene) -> None:
        """Begin previewing and recording ``scene``.

        Args:
            scene: Scene to record. A snapshot is taken so later edits do not
                affect this session.

        Raises:
            SessionStateError: If the session is not idle.
            InvalidScene: If the scene has no image or an out-of-range duration.
        """
        self._require(SessionState.IDLE, "start")
        scene.validate_renderable()
        if tuple(scene.frame_size) != tuple(self._surface.size):
            raise InvalidScene(
                f"Scene frame size {scene.frame_size.width}x{scene.frame_size.height} does not "
                f"match surface {self._surface.size.width}x{self._surface.size.height}"
            )

        self._scene = scene.snapshot()
        self._preview.start(self._scene)
        self._transition(SessionState.PREVIEWING)

        try:
            self._encoder.open(self._scene.frame_size, self._scheduler.fps)
        except EncoderUnavailable as e:
            self._fail(e)
            return

        self._surface.subscribe(self._capture)
        self._stop_timer = self._scheduler.call_later(self._scene.duration_seconds, self._auto_stop)
        self._transition(SessionState.RECORDING)

    def stop(self) -> None:
        """Finish recording; the artifact becomes available once encoding completes.

        Raises:
            SessionStateError: If the session is not recording.
        """
        self._require(SessionState.RECORDING, "stop")
        self._cancel_timer()
        self._surface.unsubscribe(self._capture)
        self._transition(SessionState.FINALIZING)
        self._finalize_handle = self._scheduler.call_soon(self._finalize)

    def reset(self) -> None:
        """Discard the artifact and timeline and return to idle.

        Raises:
            SessionStateError: If the session is not ready or errored.
        """
        if self._state not in TERMINAL_STATES:
            raise SessionStateError(f"Cannot reset a session that is {self._state.value}")
        if self._artifact is not None:
            self._artifact.release()
        self._artifact = None
        self._error = None
        self._scene = None
        if self._preview.clock is not None:
            self._preview.clock.reset()
        self._transition(SessionState.IDLE)

    def cancel(self) -> None:
        """Abandon the session because another owner took the surface."""
        if self._state in TERMINAL_STATES or self._state is SessionState.IDLE:
            return
        self._fail(SessionCancelled("Recording superseded by a newer session"))

    def _require(self, state: SessionState, operation: str) -> None:
        if self._state is not state:
            raise SessionStateError(
                f"Cannot {operation} a session that is {self._state.value} (expected {state.value})"
            )

    def _transition(self, state: SessionState) -> None:
        previous = self._state
        self._state = state
        logger.info(f"Recording session: {previous.value} -> {state.value}")
        for listener in list(self._listeners):
            listener(self, state)

    def _capture(self, timestamp: float, frame: np.ndarray) -> None:
        if self._state is not SessionState.RECORDING:
            return
        try:
            self._encoder.write_frame(timestamp, frame)
        except EncoderFailed as e:
            self._fail(e)

    def _auto_stop(self) -> None:
        self._stop_timer = None
        if self._state is SessionState.RECORDING:
            logger.info(f"Duration of {self._scene.duration_seconds}s reached, stopping")
            self.stop()

    def _finalize(self) -> None:
        self._finalize_handle = None
        if self._state is not SessionState.FINALIZING:
            return
        try:
            data = self._encoder.finalize()
        except EncoderFailed as e:
            self._fail(e)
            return

        mime_type = self._encoder.mime_type
        self._artifact = RecordingArtifact(
            encoded_bytes=data,
            mime_type=mime_type,
            suggested_file_name=suggested_file_name(self._scene.aspect.value, mime_type, self._file_prefix),
            frame_count=self._encoder.frames_written,
            duration_seconds=self._encoder.encoded_seconds,
        )
        self._preview.stop()
        self._surface.release(self)
        self._transition(SessionState.READY)

    def _fail(self, error: ReelError) -> None:
        logger.error(f"Recording session failed: {error}")
        self._cancel_timer()
        if self._finalize_handle is not None:
            self._finalize_handle.cancel()
            self._finalize_handle = None
        self._surface.unsubscribe(self._capture)
        self._encoder.abort()
        self._preview.stop()
        self._surface.release(self)
        self._error = error
        self._transition(SessionState.ERRORED)

    def _cancel_timer(self) -> None:
        if self._stop_timer is not None:
            self._stop_timer.cancel()
            self._stop_timer = None
