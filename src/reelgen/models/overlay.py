"""Overlay element model and appearance schedules."""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

HEADLINE_SETTLE_PROGRESS = 0.05
BULLET_FIRST_DELAY = 4.0
BULLET_STAGGER = 3.0
CTA_DELAY = 12.0
FADE_IN_SECONDS = 1.5
HEADLINE_FADE_SECONDS = 2.0


class OverlayKind(str, Enum):
    """Kinds of text element drawn over the image."""
    BADGE = "badge"
    HEADLINE = "headline"
    BULLET = "bullet"
    CTA = "cta"


class Easing(str, Enum):
    """Fade-in curve."""
    LINEAR = "linear"
    EASE_OUT_CUBIC = "ease_out_cubic"


def ease_out_cubic(x: float) -> float:
    """Cubic ease-out for x in [0,1]."""
    return 1 - (1 - x) ** 3


class AppearanceSchedule(BaseModel):
    """Maps elapsed time to an element opacity in [0,1]."""

    delay_seconds: float = Field(default=0.0, ge=0)
    fade_in_seconds: float = Field(default=0.0, ge=0)
    easing: Easing = Easing.LINEAR
    settle_progress: Optional[float] = Field(
        None,
        description="Normalized progress after which the element is fully opaque"
    )

    class Config:
        """Pydantic config."""
        frozen = True

    def opacity(self, elapsed_seconds: float, progress: float = 0.0) -> float:
        """Opacity at a point on the timeline.

        Args:
            elapsed_seconds: Seconds since the first rendered frame.
            progress: Normalized progress ``t`` of the session.

        Returns:
            Opacity clamped to [0,1].
        """
        if self.settle_progress is not None and progress >= self.settle_progress:
            return 1.0

        if self.fade_in_seconds <= 0:
            return 1.0 if elapsed_seconds >= self.delay_seconds else 0.0

        x = (elapsed_seconds - self.delay_seconds) / self.fade_in_seconds
        x = min(max(x, 0.0), 1.0)
        if self.easing is Easing.EASE_OUT_CUBIC:
            return ease_out_cubic(x)
        return x


class OverlayElement(BaseModel):
    """A piece of static text with its appearance schedule."""

    kind: OverlayKind
    text: str
    schedule: AppearanceSchedule = Field(default_factory=AppearanceSchedule)
    index: int = Field(default=0, ge=0, description="Position within the bullet list")

    class Config:
        """Pydantic config."""
        frozen = True

    def opacity(self, elapsed_seconds: float, progress: float = 0.0) -> float:
        return self.schedule.opacity(elapsed_seconds, progress)


class PromoCopy(BaseModel):
    """The text payloads of one promotional reel."""

    badge: str = Field(default="Deen Ply Doors", description="Brand badge label")
    headline: str = Field(
        default="For your dream home, Deen Ply Doors is the perfect choice!",
        description="Headline shown near the bottom of the frame"
    )
    bullets: List[str] = Field(
        default_factory=lambda: [
            "Doors, Plywoods, Interior Items, Iron Doors, WPVC, UPVC all in one place",
            "Design super, price friendly, quality strong",
            "Right next to the Bus Stop",
        ],
        description="Selling points, revealed one at a time"
    )
    cta: str = Field(
        default="DM us to get the catalog now!",
        description="Call-to-action pill text"
    )

    class Config:
        """Pydantic config."""
        frozen = False


def bullet_schedule(index: int) -> AppearanceSchedule:
    return AppearanceSchedule(
        delay_seconds=BULLET_FIRST_DELAY + BULLET_STAGGER * index,
        fade_in_seconds=FADE_IN_SECONDS,
    )


def build_overlays(promo: Optional[PromoCopy] = None) -> List[OverlayElement]:
    """Turn promotional copy into overlay elements in draw order.

    Args:
        promo: Text payloads. Uses the default copy if None.

    Returns:
        Badge, headline, one element per bullet, then the call-to-action.
    """
    if promo is None:
        promo = PromoCopy()

    elements = [
        OverlayElement(kind=OverlayKind.BADGE, text=promo.badge),
        OverlayElement(
            kind=OverlayKind.HEADLINE,
            text=promo.headline,
            schedule=AppearanceSchedule(
                fade_in_seconds=HEADLINE_FADE_SECONDS,
                easing=Easing.EASE_OUT_CUBIC,
                settle_progress=HEADLINE_SETTLE_PROGRESS,
            ),
        ),
    ]
    for i, bullet in enumerate(promo.bullets):
        elements.append(
            OverlayElement(kind=OverlayKind.BULLET, text=bullet, schedule=bullet_schedule(i), index=i)
        )
    elements.append(
        OverlayElement(
            kind=OverlayKind.CTA,
            text=promo.cta,
            schedule=AppearanceSchedule(delay_seconds=CTA_DELAY, fade_in_seconds=FADE_IN_SECONDS),
        )
    )
    return elements
