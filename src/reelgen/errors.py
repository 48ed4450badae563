"""Exception hierarchy for rendering and recording."""


class ReelError(Exception):
    """Base class for all reelgen errors."""


class InvalidScene(ReelError):
    """Scene cannot be rendered (missing image, duration out of range)."""


class EncoderUnavailable(ReelError):
    """Encoder could not be initialized for the requested output format."""


class EncoderFailed(ReelError):
    """Encoder broke after it was successfully opened."""


class RenderPrecondition(ReelError):
    """Programming contract violated, e.g. a clock ticked before it was started."""


class SessionStateError(ReelError):
    """Operation is not valid in the session's current state."""


class SessionCancelled(ReelError):
    """Session was superseded by another owner of the rendering surface."""
