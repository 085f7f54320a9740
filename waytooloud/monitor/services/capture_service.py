"""Async wrapper that starts/stops the level analyzer off the event loop."""

from __future__ import annotations

import asyncio
import logging
import threading

from ..domain import CaptureUnavailable
from .level_analyzer import LevelAnalyzer


class _StartAttempt:
    """Hand-off between a start worker thread and a caller that may give up on it."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._finished = False
        self._abandoned = False

    def finish(self) -> bool:
        """Mark the open as done; False if the caller already gave up."""
        with self._lock:
            self._finished = True
            return not self._abandoned

    def abandon(self) -> bool:
        """Give up on the open; False if it finished first."""
        with self._lock:
            if self._finished:
                return False
            self._abandoned = True
            return True


class CaptureService:
    """Start and stop microphone capture with timeouts; report results as booleans."""

    def __init__(
        self,
        analyzer: LevelAnalyzer,
        logger: logging.Logger,
        start_timeout: float,
        stop_timeout: float,
    ) -> None:
        self.analyzer = analyzer
        self.logger = logger.getChild("CaptureService")
        self.start_timeout = start_timeout
        self.stop_timeout = stop_timeout
        self.last_error: str | None = None

    async def start_capture(self) -> bool:
        """Open the microphone once; failure is reported, never retried."""
        if self.analyzer.is_active():
            return True
        self.last_error = None
        attempt = _StartAttempt()
        try:
            await asyncio.wait_for(
                asyncio.to_thread(self._open, attempt),
                timeout=self.start_timeout,
            )
            return True
        except asyncio.TimeoutError:
            if not attempt.abandon():
                return True
            self.last_error = f"Timed out after {self.start_timeout:.1f}s opening microphone"
            self.logger.error(self.last_error)
        except CaptureUnavailable as exc:
            self.last_error = str(exc)
            self.logger.warning("Capture unavailable: %s", exc)
        return False

    def _open(self, attempt: _StartAttempt) -> None:
        self.analyzer.start()
        if attempt.finish():
            return
        # The caller timed out; release a stream that opened too late.
        self.logger.info("Closing microphone opened after start timeout")
        self.analyzer.stop()

    async def stop_capture(self) -> None:
        if not self.analyzer.is_active():
            return
        try:
            await asyncio.wait_for(
                asyncio.to_thread(self.analyzer.stop),
                timeout=self.stop_timeout,
            )
        except Exception as exc:
            self.logger.debug("Capture stop raised: %s", exc)

    @property
    def active(self) -> bool:
        return self.analyzer.is_active()


__all__ = ["CaptureService"]
