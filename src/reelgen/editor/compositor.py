"""Frame compositor: image, camera motion and timed overlays."""

import logging
from typing import List, Optional, Sequence, Tuple

from PIL import Image, ImageDraw

from ..models.overlay import OverlayElement, OverlayKind, build_overlays
from ..models.scene import Scene
from .camera import CameraState
from .layout import wrap_text
from .overlays import MARGIN, box_width, draw_box_label, get_style, load_font, with_opacity

logger = logging.getLogger(__name__)

GRADIENT_START = 0.6
GRADIENT_MAX_OPACITY = 0.65
HEADLINE_OFFSET = 160
BULLET_OFFSET = 120
BULLET_MARKER = "• "


def cover_box(
    image_size: Tuple[int, int],
    frame_size: Tuple[int, int],
    camera: CameraState,
) -> Tuple[float, float, float, float]:
    """Region of the source image visible in the frame.

    The image is scaled to cover the frame, zoomed, centered and shifted by the
    pan offsets. The shift is clamped so the scaled image always covers the
    whole frame.

    Args:
        image_size: Source (width, height).
        frame_size: Target (width, height).
        camera: Zoom and pan for this frame.

    Returns:
        Source-space box (left, top, right, bottom) that maps onto the frame.
    """
    iw, ih = image_size
    fw, fh = frame_size
    scale = max(fw / iw, fh / ih) * camera.zoom
    draw_w = iw * scale
    draw_h = ih * scale

    dx = fw / 2 + camera.pan_x * fw - draw_w / 2
    dy = fh / 2 + camera.pan_y * fh - draw_h / 2
    dx = min(max(dx, fw - draw_w), 0.0)
    dy = min(max(dy, fh - draw_h), 0.0)

    left = -dx / scale
    top = -dy / scale
    return (
        max(left, 0.0),
        max(top, 0.0),
        min(left + fw / scale, float(iw)),
        min(top + fh / scale, float(ih)),
    )


def gradient_mask(frame_size: Tuple[int, int]) -> Tuple[Image.Image, int]:
    """Vertical alpha ramp for the bottom of the frame.

    Returns:
        The mask and the y coordinate where it starts.
    """
    width, height = frame_size
    top = int(round(height * GRADIENT_START))
    ramp = Image.linear_gradient("L").resize((width, max(height - top, 1)))
    mask = ramp.point(lambda v: int(v * GRADIENT_MAX_OPACITY))
    return mask, top


class Compositor:
    """Renders complete frames into an RGBA buffer.

    Draw order is fixed: black background, cover-fit image, readability
    gradient, badge, headline, bullets, then the call-to-action pill.
    """

    def __init__(self, overlays: Optional[Sequence[OverlayElement]] = None) -> None:
        self._overlays: List[OverlayElement] = list(overlays) if overlays is not None else build_overlays()
        self._gradient_cache: dict = {}

    @property
    def overlays(self) -> List[OverlayElement]:
        return list(self._overlays)

    def render(
        self,
        buffer: Image.Image,
        scene: Scene,
        camera: CameraState,
        elapsed_seconds: float,
        progress: float = 0.0,
    ) -> None:
        """Overwrite ``buffer`` with the frame at ``elapsed_seconds``.

        Args:
            buffer: RGBA image of the scene's frame size.
            scene: Scene with a loaded source image.
            camera: Camera state for this frame.
            elapsed_seconds: Seconds since the first frame.
            progress: Normalized progress ``t``.
        """
        frame = Image.new("RGBA", buffer.size, (0, 0, 0, 255))
        self._draw_image(frame, scene.source_image, camera)
        self._draw_gradient(frame)

        layer = Image.new("RGBA", buffer.size, (0, 0, 0, 0))
        for element in self._overlays:
            opacity = element.opacity(elapsed_seconds, progress)
            if opacity <= 0:
                continue
            layer.paste((0, 0, 0, 0), (0, 0, *buffer.size))
            self._draw_element(layer, element)
            frame.alpha_composite(with_opacity(layer, opacity))

        buffer.paste(frame)

    def _draw_image(self, frame: Image.Image, image: Image.Image, camera: CameraState) -> None:
        if image.mode not in ("RGB", "RGBA"):
            image = image.convert("RGB")
        box = cover_box(image.size, frame.size, camera)
        scaled = image.resize(frame.size, Image.Resampling.BICUBIC, box=box)
        frame.paste(scaled.convert("RGBA"), (0, 0))

    def _draw_gradient(self, frame: Image.Image) -> None:
        if frame.size not in self._gradient_cache:
            self._gradient_cache[frame.size] = gradient_mask(frame.size)
        mask, top = self._gradient_cache[frame.size]
        shade = Image.new("RGBA", mask.size, (0, 0, 0, 0))
        shade.putalpha(mask)
        frame.alpha_composite(shade, (0, top))

    def _draw_element(self, layer: Image.Image, element: OverlayElement) -> None:
        draw = ImageDraw.Draw(layer)
        width, height = layer.size

        if element.kind is OverlayKind.BADGE:
            draw_box_label(draw, element.text, (MARGIN, MARGIN), get_style("badge"))

        elif element.kind is OverlayKind.HEADLINE:
            style = get_style("headline")
            font = load_font(style)
            lines = wrap_text(
                element.text,
                width - MARGIN * 2,
                lambda s: draw.textlength(s, font=font),
            )
            y = height - HEADLINE_OFFSET
            for line in lines:
                draw.text((MARGIN, y), line, font=font, fill=style.color, anchor="ls")
                y += style.line_height

        elif element.kind is OverlayKind.BULLET:
            style = get_style("bullet")
            y = height - BULLET_OFFSET + element.index * style.line_height
            draw.text(
                (MARGIN, y),
                BULLET_MARKER + element.text,
                font=load_font(style),
                fill=style.color,
                anchor="ls",
            )

        elif element.kind is OverlayKind.CTA:
            style = get_style("cta")
            x = width - box_width(element.text, style) - MARGIN
            y = height - style.box_height - MARGIN
            draw_box_label(draw, element.text, (x, y), style)
