"""Frame rendering, preview and recording."""

from .timeline import Tick, TimelineClock
from .camera import CameraState, camera_at
from .layout import wrap_text
from .overlays import (
    TextStyle,
    STYLES,
    get_style,
    register_style,
)
from .compositor import Compositor, cover_box
from .scheduler import Scheduler, VirtualScheduler, AsyncioScheduler
from .surface import RenderSurface
from .preview import PreviewLoop, PreviewState
from .encoder import Encoder, FFmpegEncoder, resolve_format
from .session import RecordingSession, SessionState, suggested_file_name
from .studio import Studio, load_image

__all__ = [
    # Timeline and camera
    "Tick",
    "TimelineClock",
    "CameraState",
    "camera_at",
    # Layout and overlays
    "wrap_text",
    "TextStyle",
    "STYLES",
    "get_style",
    "register_style",
    # Rendering
    "Compositor",
    "cover_box",
    "RenderSurface",
    # Scheduling
    "Scheduler",
    "VirtualScheduler",
    "AsyncioScheduler",
    "PreviewLoop",
    "PreviewState",
    # Recording
    "Encoder",
    "FFmpegEncoder",
    "resolve_format",
    "RecordingSession",
    "SessionState",
    "suggested_file_name",
    "Studio",
    "load_image",
]
