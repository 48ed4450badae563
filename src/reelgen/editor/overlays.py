"""Text overlay styling and drawing."""

import logging
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Optional, Tuple, Union

from PIL import Image, ImageDraw, ImageFont

from ..config import config

logger = logging.getLogger(__name__)

Color = Tuple[int, int, int, int]
Font = Union[ImageFont.FreeTypeFont, ImageFont.ImageFont]

# Fixed margin from the frame edges for every overlay.
MARGIN = 16


@dataclass
class TextStyle:
    """Configuration for text overlay styling."""

    font: Optional[str] = None
    font_size: int = 16
    color: Color = (255, 255, 255, 255)
    line_height: int = 22
    background_color: Optional[Color] = None
    outline_color: Optional[Color] = None
    padding: Tuple[int, int] = field(default_factory=lambda: (12, 8))
    box_height: int = 32
    radius: int = 6
    baseline_offset: int = 22


# Preset styles
STYLES = {
    "badge": TextStyle(
        font_size=16,
        color=(255, 255, 255, 255),
        background_color=(0, 0, 0, 140),
        outline_color=(255, 255, 255, 64),
        padding=(12, 0),
        box_height=32,
        radius=6,
        baseline_offset=22,
    ),
    "headline": TextStyle(font_size=22, color=(234, 242, 255, 255), line_height=28),
    "bullet": TextStyle(font_size=16, color=(214, 228, 255, 255), line_height=22),
    "cta": TextStyle(
        font_size=16,
        color=(26, 26, 26, 255),
        background_color=(255, 183, 3, 255),
        padding=(12, 8),
        box_height=34,
        radius=10,
        baseline_offset=23,
    ),
}


def get_style(name: str) -> TextStyle:
    """Get a text style by name.

    Args:
        name: Style name.

    Returns:
        TextStyle configuration.

    Raises:
        ValueError: If style not found.
    """
    if name not in STYLES:
        raise ValueError(f"Unknown style: {name}. Available: {list(STYLES.keys())}")
    return STYLES[name]


def register_style(name: str, style: TextStyle) -> None:
    """Register a custom text style.

    Args:
        name: Name for the style.
        style: TextStyle configuration.
    """
    STYLES[name] = style


@lru_cache(maxsize=32)
def _load_font(path: Optional[str], size: int) -> Font:
    if path:
        try:
            return ImageFont.truetype(path, size)
        except (OSError, IOError):
            logger.warning(f"Could not load font {path}, using Pillow default")
    return ImageFont.load_default(size=size)


def load_font(style: TextStyle) -> Font:
    """Resolve the font for a style, honouring ``REELGEN_FONT``."""
    return _load_font(style.font or config.font_path, style.font_size)


def text_width(text: str, font: Font) -> float:
    """Rendered width of ``text`` in pixels."""
    return ImageDraw.Draw(Image.new("L", (1, 1))).textlength(text, font=font)


def with_opacity(layer: Image.Image, opacity: float) -> Image.Image:
    """Scale the alpha channel of an RGBA layer by ``opacity``."""
    opacity = min(max(opacity, 0.0), 1.0)
    if opacity >= 0.999:
        return layer
    alpha = layer.getchannel("A").point(lambda v: int(v * opacity))
    layer.putalpha(alpha)
    return layer


def draw_box_label(
    draw: ImageDraw.ImageDraw,
    text: str,
    origin: Tuple[float, float],
    style: TextStyle,
    font: Optional[Font] = None,
) -> Tuple[float, float, float, float]:
    """Draw a rounded box sized to its label.

    Args:
        draw: Drawing context of the layer.
        text: Label text.
        origin: Top-left corner of the box.
        style: Style with background and padding.
        font: Preloaded font. Resolved from the style if None.

    Returns:
        The box as (x0, y0, x1, y1).
    """
    font = font or load_font(style)
    pad_x, _ = style.padding
    x, y = origin
    box = (x, y, x + draw.textlength(text, font=font) + pad_x * 2, y + style.box_height)

    draw.rounded_rectangle(
        box,
        radius=min(style.radius, style.box_height // 2),
        fill=style.background_color,
        outline=style.outline_color,
        width=1 if style.outline_color else 0,
    )
    draw.text((x + pad_x, y + style.baseline_offset), text, font=font, fill=style.color, anchor="ls")
    return box


def box_width(text: str, style: TextStyle) -> float:
    """Width of a box label drawn with :func:`draw_box_label`."""
    return text_width(text, load_font(style)) + style.padding[0] * 2
