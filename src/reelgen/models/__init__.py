"""Data models for the reel generator."""

from .scene import Aspect, FrameSize, Scene, frame_size_for
from .overlay import AppearanceSchedule, OverlayElement, OverlayKind, PromoCopy, build_overlays
from .artifact import RecordingArtifact
from .manifest import PromoManifest

__all__ = [
    "Aspect",
    "FrameSize",
    "Scene",
    "frame_size_for",
    "AppearanceSchedule",
    "OverlayElement",
    "OverlayKind",
    "PromoCopy",
    "build_overlays",
    "RecordingArtifact",
    "PromoManifest",
]
