"""Recoverable failures raised by the monitor services."""

from __future__ import annotations


class CaptureUnavailable(RuntimeError):
    """Microphone could not be opened (permission denied or no input device)."""


class PlaybackError(RuntimeError):
    """Alert sound could not be played (missing/corrupt file or busy device)."""


__all__ = ["CaptureUnavailable", "PlaybackError"]
