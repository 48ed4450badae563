"""Ken-Burns camera motion."""

import math
from dataclasses import dataclass

BASE_ZOOM = 1.05
ZOOM_RANGE = 0.12
PAN_X_AMPLITUDE = 0.05
PAN_Y_AMPLITUDE = 0.04


@dataclass(frozen=True)
class CameraState:
    """Zoom factor and pan offsets as fractions of the frame size."""

    zoom: float
    pan_x: float
    pan_y: float


def camera_at(t: float) -> CameraState:
    """Camera state at normalized progress ``t``.

    Zooms in from 5% to 17% over the full duration while the pan traces one
    full ellipse.
    """
    angle = 2 * math.pi * t
    return CameraState(
        zoom=BASE_ZOOM + ZOOM_RANGE * t,
        pan_x=PAN_X_AMPLITUDE * math.sin(angle),
        pan_y=PAN_Y_AMPLITUDE * math.cos(angle),
    )
