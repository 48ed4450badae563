"""Promotional reel generator: Ken-Burns motion and timed text over a still image."""

__version__ = "0.1.0"
