"""Manifest data model."""

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator
import yaml

from .overlay import PromoCopy
from .scene import Aspect, MAX_DURATION_SECONDS, MIN_DURATION_SECONDS


class PromoManifest(BaseModel):
    """Promotional reel project file."""

    project_name: str = Field(..., description="Project name")
    image: Optional[str] = Field(None, description="Path to the source image")
    aspect: Aspect = Field(default=Aspect.STORY, description="Output aspect ratio")
    duration_seconds: int = Field(
        default=MAX_DURATION_SECONDS,
        ge=MIN_DURATION_SECONDS,
        le=MAX_DURATION_SECONDS,
        description="Clip duration in seconds"
    )
    promo_copy: PromoCopy = Field(default_factory=PromoCopy, description="Overlay text")

    class Config:
        """Pydantic config."""
        frozen = False

    @field_validator("aspect", mode="before")
    @classmethod
    def parse_unquoted_aspect(cls, value):
        # YAML 1.1 reads an unquoted 9:16 as the base-60 integer 556.
        if isinstance(value, int):
            return f"{value // 60}:{value % 60}"
        return value

    @classmethod
    def from_yaml(cls, path: Path) -> "PromoManifest":
        """Load manifest from YAML file."""
        with open(path, "r") as f:
            data = yaml.safe_load(f)
        return cls(**(data or {}))

    def to_yaml(self, path: Path) -> None:
        """Save manifest to YAML file."""
        with open(path, "w") as f:
            yaml.safe_dump(self.model_dump(mode="json"), f, default_flow_style=False, sort_keys=False)

    def image_path(self, base: Path) -> Optional[Path]:
        """Resolve the image path relative to the manifest's directory."""
        if not self.image:
            return None
        path = Path(self.image)
        return path if path.is_absolute() else base / path
