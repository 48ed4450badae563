"""Recording artifact model."""

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path


@dataclass
class RecordingArtifact:
    """Encoded output of a finished recording session."""

    encoded_bytes: bytes
    mime_type: str
    suggested_file_name: str
    frame_count: int = 0
    duration_seconds: float = 0.0
    created_at: datetime = field(default_factory=datetime.now)
    released: bool = False

    @property
    def size(self) -> int:
        return len(self.encoded_bytes)

    def release(self) -> None:
        """Drop the encoded bytes once the artifact is superseded."""
        self.encoded_bytes = b""
        self.released = True

    def save(self, output_path: Path) -> Path:
        """Write the encoded bytes to disk.

        Args:
            output_path: File path, or a directory to place the suggested file name in.

        Returns:
            Path of the written file.

        Raises:
            ValueError: If the artifact was already released.
        """
        if self.released:
            raise ValueError("Artifact was released and has no content")

        if output_path.is_dir():
            output_path = output_path / safe_file_name(self.suggested_file_name)

        # Ensure output directory exists
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_bytes(self.encoded_bytes)
        return output_path


def safe_file_name(name: str) -> str:
    """Replace characters that are not portable in file names (the aspect colon)."""
    return name.replace(":", "x")
