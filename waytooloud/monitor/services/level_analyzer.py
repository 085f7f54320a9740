"""Microphone capture + weighted loudness computation.

``LevelAnalyzer`` has two states: idle (no :class:`CaptureSession`) and
monitoring. It owns at most one session; whoever holds the analyzer owns the
microphone.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable

import numpy as np

from waytooloud.core.logging_utils import ensure_structured_logger

from ..domain import CaptureUnavailable, SensitivityRange
from ..domain.constants import (
    AUDIO_CHANNELS_MONO,
    DEFAULT_MAX_DB,
    DEFAULT_MIN_DB,
    FALLBACK_SAMPLE_RATE,
    FFT_SIZE,
    SMOOTHING_TIME_CONSTANT,
)
from ..domain.loudness import level_from_bins
from ..domain.weighting import a_weight_curve, bin_frequencies
from .analyser import FrequencyAnalyser

StreamFactory = Callable[..., Any]


def sounddevice_input_stream(**kwargs: Any) -> Any:
    """Default stream factory: a ``sounddevice.InputStream``."""
    import sounddevice as sd

    return sd.InputStream(**kwargs)


@dataclass(slots=True)
class CaptureSession:
    """One open microphone stream plus its analysis context and byte buffer."""

    stream: Any
    analyser: FrequencyAnalyser
    sample_rate: float
    buffer: np.ndarray = field(init=False)
    weights: np.ndarray = field(init=False)
    lock: threading.Lock = field(init=False, default_factory=threading.Lock)

    def __post_init__(self) -> None:
        bins = self.analyser.frequency_bin_count
        self.buffer = np.zeros(bins, dtype=np.uint8)
        self.weights = a_weight_curve(bin_frequencies(bins, self.sample_rate, self.analyser.fft_size))


class LevelAnalyzer:
    """Owns the capture session and turns analyser snapshots into a 0-100 level."""

    def __init__(
        self,
        logger: logging.Logger | None = None,
        *,
        device: int | str | None = None,
        sample_rate: float | None = None,
        sensitivity: SensitivityRange | None = None,
        stream_factory: StreamFactory | None = None,
        fft_size: int = FFT_SIZE,
        smoothing_time_constant: float = SMOOTHING_TIME_CONSTANT,
    ) -> None:
        base_logger = ensure_structured_logger(logger, fallback_name="Monitor")
        self.logger = base_logger.getChild("LevelAnalyzer")
        self.device = device
        self.requested_sample_rate = sample_rate
        self.fft_size = fft_size
        self.smoothing_time_constant = smoothing_time_constant
        self._stream_factory = stream_factory or sounddevice_input_stream
        self._sensitivity = sensitivity or SensitivityRange(DEFAULT_MIN_DB, DEFAULT_MAX_DB)
        self._session: CaptureSession | None = None
        self._lifecycle_lock = threading.Lock()
        self._last_level = 0.0
        self._last_status: str | None = None
        self._read_errors = 0

    # ------------------------------------------------------------------
    # Lifecycle

    def start(self) -> None:
        """Open the microphone. Raises :class:`CaptureUnavailable` on failure."""
        with self._lifecycle_lock:
            if self._session is not None:
                return
            analyser = FrequencyAnalyser(self.fft_size, self.smoothing_time_constant)

            def _callback(indata, frames, time_info, status):
                self._handle_callback(analyser, indata, status)

            self.logger.debug("Opening input stream (device=%s)", self.device)
            stream = None
            try:
                stream = self._stream_factory(
                    device=self.device,
                    channels=AUDIO_CHANNELS_MONO,
                    samplerate=self.requested_sample_rate,
                    dtype="float32",
                    callback=_callback,
                )
                stream.start()
            except Exception as exc:
                if stream is not None:
                    self._close_stream(stream)
                self.logger.error("Microphone unavailable: %s", exc)
                raise CaptureUnavailable(str(exc) or type(exc).__name__) from exc

            sample_rate = self._resolve_sample_rate(stream)
            self._session = CaptureSession(stream=stream, analyser=analyser, sample_rate=sample_rate)
            self._last_level = 0.0
            self._last_status = None
            self._read_errors = 0
            self.logger.info("Input stream started (%d Hz, %d bins)", int(sample_rate), analyser.frequency_bin_count)

    def stop(self) -> None:
        """Release the microphone. Safe to call repeatedly or while idle."""
        with self._lifecycle_lock:
            session = self._session
            if session is None:
                return
            self._session = None
        self._close_stream(session.stream)
        self._last_level = 0.0
        self.logger.info("Input stream stopped")

    def is_active(self) -> bool:
        return self._session is not None

    @property
    def sample_rate(self) -> float | None:
        session = self._session
        return session.sample_rate if session else None

    # ------------------------------------------------------------------
    # Sensitivity

    def set_sensitivity(self, min_db: float, max_db: float) -> None:
        self._sensitivity = SensitivityRange(float(min_db), float(max_db))
        self.logger.debug("Sensitivity set to %.1f..%.1f dB", min_db, max_db)

    def get_sensitivity(self) -> SensitivityRange:
        return self._sensitivity

    # ------------------------------------------------------------------
    # Level

    def get_level(self) -> float:
        """Return the current weighted loudness in [0, 100]; 0 while idle."""
        session = self._session
        if session is None:
            return 0.0
        try:
            with session.lock:
                session.analyser.get_byte_frequency_data(session.buffer)
                level = level_from_bins(
                    session.buffer,
                    session.sample_rate,
                    session.analyser.fft_size,
                    self._sensitivity,
                    weights=session.weights,
                )
        except Exception:
            self._read_errors += 1
            if self._read_errors == 1:
                self.logger.warning("Level read failed (suppressing further)", exc_info=True)
            return self._last_level
        self._last_level = level
        return level

    @property
    def last_level(self) -> float:
        return self._last_level

    # ------------------------------------------------------------------
    # Internal helpers

    def _handle_callback(self, analyser: FrequencyAnalyser, indata, status) -> None:
        mono = indata[:, 0] if getattr(indata, "ndim", 1) > 1 else indata
        analyser.push_samples(mono)
        if status:
            status_str = str(status)
            if status_str != self._last_status:
                self.logger.warning("Audio callback status: %s", status_str)
                self._last_status = status_str

    def _resolve_sample_rate(self, stream: Any) -> float:
        try:
            actual = float(stream.samplerate)
            if actual > 0:
                return actual
        except (AttributeError, TypeError, ValueError):
            pass
        if self.requested_sample_rate:
            return float(self.requested_sample_rate)
        return float(FALLBACK_SAMPLE_RATE)

    def _close_stream(self, stream: Any) -> None:
        try:
            stream.stop()
            stream.close()
        except Exception as exc:
            self.logger.debug("Stream close error: %s", exc)


__all__ = ["CaptureSession", "LevelAnalyzer", "StreamFactory", "sounddevice_input_stream"]
