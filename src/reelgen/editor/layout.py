"""Greedy word wrapping."""

from typing import Callable, List


def wrap_text(text: str, max_width: float, measure: Callable[[str], float]) -> List[str]:
    """Wrap text into lines no wider than ``max_width``.

    Words are joined by single spaces. A word that is wider than
    ``max_width`` on its own is never split and occupies its own line.

    Args:
        text: Text to wrap.
        max_width: Maximum line width, in the units ``measure`` returns.
        measure: Returns the rendered width of a string.

    Returns:
        Lines in order. Empty text gives a single empty line.
    """
    lines: List[str] = []
    line = ""

    for word in text.split():
        candidate = f"{line} {word}" if line else word
        if line and measure(candidate) > max_width:
            lines.append(line)
            line = word
        else:
            line = candidate

    lines.append(line)
    return lines
