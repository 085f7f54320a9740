"""Frequency-analysis context fed by the microphone callback.

Behaves like a browser ``AnalyserNode``: the last ``fft_size`` samples are
Blackman-windowed, transformed, smoothed over time and reported either in dB
or as bytes scaled between ``min_decibels`` and ``max_decibels``.
"""

from __future__ import annotations

import threading

import numpy as np

from ..domain.constants import (
    ANALYSER_MAX_DECIBELS,
    ANALYSER_MIN_DECIBELS,
    BYTE_MAX,
    FFT_SIZE,
    SMOOTHING_TIME_CONSTANT,
)


def blackman_window(size: int) -> np.ndarray:
    """Periodic Blackman window (alpha = 0.16) as used by Web Audio analysers."""
    n = np.arange(size, dtype=np.float64)
    phase = 2.0 * np.pi * n / size
    return 0.42 - 0.5 * np.cos(phase) + 0.08 * np.cos(2.0 * phase)


class FrequencyAnalyser:
    """Thread-safe ring buffer + smoothed magnitude spectrum."""

    def __init__(
        self,
        fft_size: int = FFT_SIZE,
        smoothing_time_constant: float = SMOOTHING_TIME_CONSTANT,
        min_decibels: float = ANALYSER_MIN_DECIBELS,
        max_decibels: float = ANALYSER_MAX_DECIBELS,
    ) -> None:
        if fft_size < 32 or fft_size & (fft_size - 1):
            raise ValueError(f"fft_size must be a power of two >= 32 (got {fft_size})")
        if not 0.0 <= smoothing_time_constant <= 1.0:
            raise ValueError("smoothing_time_constant must be within [0, 1]")
        if min_decibels >= max_decibels:
            raise ValueError("min_decibels must be lower than max_decibels")
        self.fft_size = fft_size
        self.smoothing_time_constant = float(smoothing_time_constant)
        self.min_decibels = float(min_decibels)
        self.max_decibels = float(max_decibels)
        self._window = blackman_window(fft_size)
        self._ring = np.zeros(fft_size, dtype=np.float32)
        self._write_pos = 0
        self._smoothed = np.zeros(self.frequency_bin_count, dtype=np.float64)
        self._lock = threading.Lock()

    @property
    def frequency_bin_count(self) -> int:
        return self.fft_size // 2

    # ------------------------------------------------------------------
    # Producer side (audio callback thread)

    def push_samples(self, samples) -> None:
        block = np.asarray(samples, dtype=np.float32).reshape(-1)
        if block.size == 0:
            return
        size = self.fft_size
        with self._lock:
            if block.size >= size:
                self._ring[:] = block[-size:]
                self._write_pos = 0
                return
            end = self._write_pos + block.size
            if end <= size:
                self._ring[self._write_pos:end] = block
            else:
                split = size - self._write_pos
                self._ring[self._write_pos:] = block[:split]
                self._ring[: end - size] = block[split:]
            self._write_pos = end % size

    # ------------------------------------------------------------------
    # Consumer side

    def time_domain_frame(self) -> np.ndarray:
        """Return the buffered samples ordered oldest to newest."""
        with self._lock:
            return np.concatenate((self._ring[self._write_pos:], self._ring[: self._write_pos]))

    def get_float_frequency_data(self) -> np.ndarray:
        """Smoothed magnitude spectrum in dB (``-inf`` for silent bins)."""
        frame = self.time_domain_frame().astype(np.float64)
        spectrum = np.fft.rfft(frame * self._window)[: self.frequency_bin_count]
        magnitude = np.abs(spectrum) / self.fft_size
        with self._lock:
            tau = self.smoothing_time_constant
            smoothed = tau * self._smoothed + (1.0 - tau) * magnitude
            smoothed[~np.isfinite(smoothed)] = 0.0
            self._smoothed = smoothed
        with np.errstate(divide="ignore"):
            return 20.0 * np.log10(smoothed)

    def get_byte_frequency_data(self, out: np.ndarray | None = None) -> np.ndarray:
        """Fill ``out`` (uint8, one entry per bin) with scaled magnitudes and return it."""
        db = self.get_float_frequency_data()
        scale = BYTE_MAX / (self.max_decibels - self.min_decibels)
        with np.errstate(invalid="ignore"):
            scaled = np.floor(scale * (db - self.min_decibels))
        scaled = np.nan_to_num(scaled, nan=0.0, neginf=0.0, posinf=float(BYTE_MAX))
        values = np.clip(scaled, 0, BYTE_MAX).astype(np.uint8)
        if out is None:
            return values
        count = min(out.size, values.size)
        out[:count] = values[:count]
        return out


__all__ = ["FrequencyAnalyser", "blackman_window"]
