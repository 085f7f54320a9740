"""A-weighting gain curve (IEC 61672 approximation).

``a_weight`` returns the linear gain applied to a bin's amplitude; it is
normalised so that 1 kHz sits at roughly unity (the 1.2588966 factor is the
+2 dB offset of the standard curve).
"""

from __future__ import annotations

import math

import numpy as np

C1 = 12194.217 ** 2
C2 = 20.598997 ** 2
C3 = 107.65265 ** 2
C4 = 737.86223 ** 2
GAIN = 1.2588966 * 148840000


def a_weight(frequency_hz: float) -> float:
    """Return the linear A-weighting gain for ``frequency_hz`` (>= 0)."""
    f2 = float(frequency_hz) * float(frequency_hz)
    f4 = f2 * f2
    num = GAIN * f4
    den = (f2 + C2) * math.sqrt((f2 + C3) * (f2 + C4)) * (f2 + C1)
    if not (math.isfinite(num) and math.isfinite(den)):
        # f**4 overflows far above the audible band, where the curve is ~0.
        return 0.0
    return num / den if den > 0 else 0.0


def a_weight_curve(frequencies: np.ndarray) -> np.ndarray:
    """Vectorised :func:`a_weight` over an array of frequencies."""
    f = np.asarray(frequencies, dtype=np.float64)
    with np.errstate(over="ignore", invalid="ignore", divide="ignore"):
        f2 = f * f
        f4 = f2 * f2
        num = GAIN * f4
        den = (f2 + C2) * np.sqrt((f2 + C3) * (f2 + C4)) * (f2 + C1)
        weights = np.where(den > 0, num / np.where(den > 0, den, 1.0), 0.0)
    return np.where(np.isfinite(num) & np.isfinite(den), weights, 0.0)


def bin_frequencies(bin_count: int, sample_rate: float, fft_size: int) -> np.ndarray:
    """Centre frequency of each analyser bin: ``i * sample_rate / fft_size``."""
    return np.arange(bin_count, dtype=np.float64) * (float(sample_rate) / float(fft_size))


__all__ = ["a_weight", "a_weight_curve", "bin_frequencies"]
