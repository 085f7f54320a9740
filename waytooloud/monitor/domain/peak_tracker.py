"""Rolling-window peak tracking for the level meter."""

from __future__ import annotations

import time
from collections import deque
from dataclasses import dataclass, field

from .constants import PEAK_CHANGE_THRESHOLD, PEAK_WINDOW_SECONDS
from .entities import PeakEntry


@dataclass(slots=True)
class PeakTracker:
    """Report the maximum level seen within the last ``window`` seconds.

    Samples must arrive in timestamp order. Callers are expected to throttle
    updates (about 20 per second); the tracker itself does not.
    """

    window: float = PEAK_WINDOW_SECONDS
    change_threshold: float = PEAK_CHANGE_THRESHOLD
    _history: deque[PeakEntry] = field(init=False, default_factory=deque)
    _peak: float = field(init=False, default=0.0)
    _displayed_peak: float = field(init=False, default=0.0)
    dirty: bool = field(init=False, default=False)

    def update(self, current_value: float, timestamp: float | None = None) -> float:
        """Record ``current_value`` (if positive), prune, and return the window peak."""
        now = time.monotonic() if timestamp is None else float(timestamp)
        if current_value > 0:
            self._history.append(PeakEntry(float(current_value), now))

        cutoff = now - self.window
        history = self._history
        while history and history[0].timestamp < cutoff:
            history.popleft()

        self._peak = max(entry.value for entry in history) if history else 0.0
        self._refresh_displayed_peak()
        return self._peak

    def _refresh_displayed_peak(self) -> None:
        if not self._history:
            displayed = 0.0
        elif abs(self._peak - self._displayed_peak) > self.change_threshold:
            displayed = self._peak
        else:
            displayed = self._displayed_peak
        if displayed != self._displayed_peak:
            self._displayed_peak = displayed
            self.dirty = True

    @property
    def peak(self) -> float:
        return self._peak

    @property
    def displayed_peak(self) -> float:
        """Peak value that only moves when the change exceeds ``change_threshold``."""
        return self._displayed_peak

    @property
    def history(self) -> tuple[PeakEntry, ...]:
        return tuple(self._history)

    def clear_dirty(self) -> None:
        self.dirty = False

    def reset(self) -> None:
        self._history.clear()
        self._peak = 0.0
        if self._displayed_peak != 0.0:
            self._displayed_peak = 0.0
            self.dirty = True


__all__ = ["PeakTracker"]
