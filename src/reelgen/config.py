"""Configuration management."""

import os
import re
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# ffmpeg bitrate such as 2500k, 4M or 800000
BITRATE_PATTERN = re.compile(r"^\d+(\.\d+)?[kKmMgG]?$")


def _optional_env(name: str) -> Optional[str]:
    value = os.getenv(name, "")
    return value or None


class Config(BaseModel):
    """Application configuration."""

    # Paths
    workspace: Path = Field(
        default_factory=lambda: Path(os.getenv("REELGEN_WORKSPACE", ".")),
        description="Directory for rendered output"
    )
    font_path: Optional[str] = Field(
        default_factory=lambda: _optional_env("REELGEN_FONT"),
        description="TrueType font used for overlays (Pillow default if unset)"
    )

    # Capture settings
    fps: int = Field(
        default_factory=lambda: int(os.getenv("REELGEN_FPS", "30")),
        description="Frames captured per second"
    )
    frame_width: int = Field(
        default_factory=lambda: int(os.getenv("REELGEN_FRAME_WIDTH", "540")),
        description="Output frame width in pixels"
    )
    mime_type: str = Field(
        default_factory=lambda: os.getenv("REELGEN_MIME_TYPE", "video/webm;codecs=vp9"),
        description="Encoded output format"
    )
    bitrate: Optional[str] = Field(
        default_factory=lambda: _optional_env("REELGEN_BITRATE"),
        description="Video bitrate (e.g., '2500k'). None for encoder default"
    )
    file_prefix: str = Field(
        default_factory=lambda: os.getenv("REELGEN_FILE_PREFIX", "deen-ply-instagram"),
        description="Prefix of the suggested download file name"
    )

    class Config:
        """Pydantic config."""
        frozen = False

    def validate_required(self) -> None:
        """Validate that capture settings are usable.

        Raises:
            ValueError: If any setting is out of range.
        """
        problems: list[str] = []

        if self.fps <= 0:
            problems.append(f"REELGEN_FPS must be positive, got {self.fps}")
        if self.frame_width <= 0:
            problems.append(f"REELGEN_FRAME_WIDTH must be positive, got {self.frame_width}")
        if not self.file_prefix:
            problems.append("REELGEN_FILE_PREFIX must not be empty")
        if self.bitrate is not None and not BITRATE_PATTERN.match(self.bitrate):
            problems.append(f"REELGEN_BITRATE must look like 2500k or 4M, got {self.bitrate!r}")

        if problems:
            raise ValueError("Invalid configuration: " + "; ".join(problems))


# Global config instance
config = Config()
