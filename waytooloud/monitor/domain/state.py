"""Monitor state tracking independent of sounddevice or any UI."""

from __future__ import annotations

from typing import Callable

from waytooloud.core.logging_utils import get_module_logger

from .entities import MonitorSnapshot, SensitivityRange

logger = get_module_logger(__name__)


class MonitorState:
    """Holds the latest level/peak readings and notifies observers on change.

    Peak values are expected to arrive already debounced (see
    :attr:`PeakTracker.displayed_peak`).
    """

    def __init__(self) -> None:
        self.active: bool = False
        self.level: float = 0.0
        self.peak: float = 0.0
        self.sensitivity: SensitivityRange = SensitivityRange()
        self._observers: list[Callable[[MonitorSnapshot], None]] = []
        self._status_text: str = "Monitoring stopped"

    # ------------------------------------------------------------------
    # Observer helpers

    def subscribe(self, observer: Callable[[MonitorSnapshot], None]) -> None:
        self._observers.append(observer)
        observer(self.snapshot())

    def unsubscribe(self, observer: Callable[[MonitorSnapshot], None]) -> None:
        if observer in self._observers:
            self._observers.remove(observer)

    def _notify(self) -> None:
        snapshot = self.snapshot()
        for observer in list(self._observers):
            try:
                observer(snapshot)
            except Exception:
                logger.debug("Observer notification failed", exc_info=True)

    def snapshot(self) -> MonitorSnapshot:
        return MonitorSnapshot(
            active=self.active,
            level=self.level,
            peak=self.peak,
            sensitivity=self.sensitivity,
            status_text=self._status_text,
        )

    @property
    def status_text(self) -> str:
        return self._status_text

    # ------------------------------------------------------------------
    # State mutation helpers

    def set_active(self, active: bool, status_text: str | None = None) -> None:
        if self.active == active and status_text in (None, self._status_text):
            return
        self.active = active
        if not active:
            self.level = 0.0
        if status_text is not None:
            self._status_text = status_text
        else:
            self._status_text = "Monitoring" if active else "Monitoring stopped"
        self._notify()

    def set_status(self, status_text: str) -> None:
        if status_text == self._status_text:
            return
        self._status_text = status_text
        self._notify()

    def set_level(self, level: float) -> None:
        if level == self.level:
            return
        self.level = level
        self._notify()

    def set_peak(self, peak: float) -> None:
        if peak == self.peak:
            return
        self.peak = peak
        self._notify()

    def set_sensitivity(self, sensitivity: SensitivityRange) -> None:
        if sensitivity == self.sensitivity:
            return
        self.sensitivity = sensitivity
        self._notify()


__all__ = ["MonitorState"]
