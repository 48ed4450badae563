"""Video encoders that consume rendered frames."""

import logging
import os
import subprocess
import tempfile
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

import numpy as np
from moviepy.video.io.ffmpeg_writer import FFMPEG_VideoWriter

from ..errors import EncoderFailed, EncoderUnavailable
from ..models.scene import FrameSize

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "video/webm;codecs=vp9"

# How long ffmpeg must stay alive after launch before the encoder counts as open.
STARTUP_CHECK_SECONDS = 0.5


@dataclass(frozen=True)
class OutputFormat:
    """ffmpeg settings for one output mime type."""

    codec: str
    extension: str
    container_mime: str
    preset: Optional[str] = None
    even_dimensions: bool = False


FORMATS: Dict[str, OutputFormat] = {
    "video/webm;codecs=vp9": OutputFormat("libvpx-vp9", ".webm", "video/webm"),
    "video/webm;codecs=vp8": OutputFormat("libvpx", ".webm", "video/webm"),
    "video/mp4": OutputFormat("libx264", ".mp4", "video/mp4", preset="medium", even_dimensions=True),
}


def resolve_format(mime_type: str) -> OutputFormat:
    """Look up ffmpeg settings for a mime type.

    Raises:
        EncoderUnavailable: If the mime type is not supported.
    """
    key = mime_type.replace(" ", "").lower()
    if key not in FORMATS:
        raise EncoderUnavailable(
            f"Unsupported output format: {mime_type}. Available: {list(FORMATS.keys())}"
        )
    return FORMATS[key]


def extension_for(mime_type: str) -> str:
    return resolve_format(mime_type).extension


class Encoder(ABC):
    """Consumes frames in timestamp order and produces encoded bytes.

    Frames are placed on a fixed ``1/fps`` output grid by timestamp, so the
    encoded length follows the recorded time even when rendering falls behind.
    A gap repeats the previous frame; a frame landing on a slot that is
    already filled is dropped. Subclasses implement the ``_open``, ``_write``,
    ``_finalize`` and ``_abort`` hooks.
    """

    mime_type: str = DEFAULT_MIME_TYPE

    def __init__(self) -> None:
        self._fps = 0
        self._frames = 0
        self._first_timestamp: Optional[float] = None
        self._next_slot = 0
        self._previous: Optional[np.ndarray] = None

    @property
    def frames_written(self) -> int:
        """Frames in the encoded stream, including repeats."""
        return self._frames

    @property
    def fps(self) -> int:
        return self._fps

    @property
    def encoded_seconds(self) -> float:
        """Length of the encoded stream."""
        if self._fps <= 0:
            return 0.0
        return self._frames / self._fps

    def open(self, size: FrameSize, fps: int) -> None:
        """Prepare to receive frames.

        Raises:
            EncoderUnavailable: If the encoder cannot be initialized.
        """
        self._reset_pacing()
        self._open(size, fps)
        self._fps = fps

    def write_frame(self, timestamp: float, frame: np.ndarray) -> None:
        """Place one RGB frame at the grid slot for ``timestamp``.

        Raises:
            EncoderFailed: If the frame could not be encoded.
        """
        if self._fps <= 0:
            raise EncoderFailed("Encoder is not open")

        if self._first_timestamp is None:
            self._first_timestamp = timestamp
        slot = round((timestamp - self._first_timestamp) * self._fps)
        if slot < self._next_slot:
            logger.debug(f"Dropping frame at {timestamp:.3f}s, slot {slot} already written")
            return

        gap = slot - self._next_slot
        if gap and self._previous is not None:
            logger.debug(f"Repeating previous frame {gap} times before {timestamp:.3f}s")
            for _ in range(gap):
                self._emit(timestamp, self._previous)
        self._emit(timestamp, frame)
        self._previous = frame
        self._next_slot = slot + 1

    def finalize(self) -> bytes:
        """Flush and return the encoded stream.

        Raises:
            EncoderFailed: If the stream could not be completed.
        """
        if self._fps <= 0:
            raise EncoderFailed("Encoder is not open")
        data = self._finalize()
        self._previous = None
        return data

    def abort(self) -> None:
        """Discard everything written so far. Safe to call more than once."""
        self._abort()
        self._reset_pacing()

    def _emit(self, timestamp: float, frame: np.ndarray) -> None:
        self._write(timestamp, frame)
        self._frames += 1

    def _reset_pacing(self) -> None:
        self._fps = 0
        self._frames = 0
        self._first_timestamp = None
        self._next_slot = 0
        self._previous = None

    @abstractmethod
    def _open(self, size: FrameSize, fps: int) -> None:
        ...

    @abstractmethod
    def _write(self, timestamp: float, frame: np.ndarray) -> None:
        ...

    @abstractmethod
    def _finalize(self) -> bytes:
        ...

    @abstractmethod
    def _abort(self) -> None:
        ...


class FFmpegEncoder(Encoder):
    """Streams frames into ffmpeg through moviepy's video writer.

    Frames are piped as they arrive, so memory use does not grow with the clip
    length. The encoded file lives in a temporary directory until finalized.
    """

    def __init__(
        self,
        mime_type: str = DEFAULT_MIME_TYPE,
        bitrate: Optional[str] = None,
        work_dir: Optional[Path] = None,
    ) -> None:
        super().__init__()
        self.mime_type = mime_type
        self._bitrate = bitrate
        self._work_dir = work_dir
        self._writer: Optional[FFMPEG_VideoWriter] = None
        self._path: Optional[Path] = None

    def _open(self, size: FrameSize, fps: int) -> None:
        output_format = resolve_format(self.mime_type)

        fd, name = tempfile.mkstemp(suffix=output_format.extension, dir=self._work_dir)
        os.close(fd)
        self._path = Path(name)

        ffmpeg_params = ["-pix_fmt", "yuv420p"]
        if output_format.even_dimensions:
            # yuv420p in H.264 needs even sides; 4:5 at 540 wide is 675 tall.
            ffmpeg_params = ["-vf", "pad=ceil(iw/2)*2:ceil(ih/2)*2"] + ffmpeg_params

        writer_params = {
            "codec": output_format.codec,
            "bitrate": self._bitrate,
            "ffmpeg_params": ffmpeg_params,
        }
        if output_format.preset:
            writer_params["preset"] = output_format.preset

        try:
            self._writer = FFMPEG_VideoWriter(str(self._path), tuple(size), fps, **writer_params)
        except (OSError, IOError) as e:
            self._discard_file()
            raise EncoderUnavailable(f"Could not start {output_format.codec} encoder: {e}") from e

        self._check_started(output_format.codec)
        logger.info(f"Encoder opened: {output_format.codec} {size.width}x{size.height} @ {fps}fps")

    def _check_started(self, codec: str) -> None:
        """Fail fast when ffmpeg rejects its arguments and exits right away."""
        proc = self._writer.proc
        try:
            returncode = proc.wait(timeout=STARTUP_CHECK_SECONDS)
        except subprocess.TimeoutExpired:
            return

        lines = []
        if proc.stderr is not None:
            lines = proc.stderr.read().decode("utf-8", errors="replace").strip().splitlines()
        if proc.stdin is not None:
            proc.stdin.close()
        self._writer = None
        self._discard_file()
        reason = f": {lines[-1]}" if lines else ""
        raise EncoderUnavailable(f"ffmpeg exited with code {returncode} while starting {codec}{reason}")

    def _write(self, timestamp: float, frame: np.ndarray) -> None:
        if self._writer is None:
            raise EncoderFailed("Encoder is not open")
        try:
            self._writer.write_frame(frame)
        except (OSError, IOError) as e:
            raise EncoderFailed(f"Failed to encode frame at {timestamp:.3f}s: {e}") from e

    def _finalize(self) -> bytes:
        if self._writer is None:
            raise EncoderFailed("Encoder is not open")
        try:
            self._writer.close()
            self._writer = None
            data = self._path.read_bytes()
        except (OSError, IOError) as e:
            self.abort()
            raise EncoderFailed(f"Failed to finalize video: {e}") from e

        self._discard_file()
        if not data:
            raise EncoderFailed("Encoder produced an empty stream")
        logger.info(f"Encoder finalized: {self.frames_written} frames, {len(data)} bytes")
        return data

    def _abort(self) -> None:
        if self._writer is not None:
            try:
                self._writer.close()
            except (OSError, IOError) as e:
                logger.warning(f"Error closing encoder during abort: {e}")
            self._writer = None
        self._discard_file()

    def _discard_file(self) -> None:
        if self._path is not None:
            self._path.unlink(missing_ok=True)
            self._path = None
