"""Weighted-loudness percentage computed from a byte frequency snapshot."""

from __future__ import annotations

import math

import numpy as np

from .constants import BYTE_MAX, LEVEL_MAX, LEVEL_MIN, RMS_FLOOR
from .entities import SensitivityRange
from .weighting import a_weight_curve, bin_frequencies


def weighted_rms(amplitudes: np.ndarray, weights: np.ndarray) -> float:
    """RMS of byte amplitudes (0-255) normalised to [0, 1] and scaled by ``weights``."""
    count = int(amplitudes.size)
    if count == 0:
        return 0.0
    normalized = amplitudes.astype(np.float64) / BYTE_MAX
    weighted = normalized * weights
    return math.sqrt(float(np.sum(weighted * weighted)) / count)


def rms_to_db(rms: float) -> float:
    return 20.0 * math.log10(max(rms, RMS_FLOOR))


def db_to_level(db: float, sensitivity: SensitivityRange) -> float:
    """Linearly map ``db`` onto [0, 100] using the sensitivity bounds."""
    span = sensitivity.span
    if span == 0:
        return LEVEL_MAX if db >= sensitivity.max_db else LEVEL_MIN
    level = (db - sensitivity.min_db) / span * 100.0
    if math.isnan(level):
        return LEVEL_MIN
    return max(LEVEL_MIN, min(LEVEL_MAX, level))


def level_from_bins(
    amplitudes: np.ndarray,
    sample_rate: float,
    fft_size: int,
    sensitivity: SensitivityRange,
    weights: np.ndarray | None = None,
) -> float:
    """Return the A-weighted loudness percentage for one analyser snapshot.

    ``weights`` may be passed pre-computed (one gain per bin) to avoid
    rebuilding the curve on every call.
    """
    amplitudes = np.asarray(amplitudes)
    if weights is None:
        weights = a_weight_curve(bin_frequencies(amplitudes.size, sample_rate, fft_size))
    rms = weighted_rms(amplitudes, weights)
    return db_to_level(rms_to_db(rms), sensitivity)


__all__ = ["db_to_level", "level_from_bins", "rms_to_db", "weighted_rms"]
