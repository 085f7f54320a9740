"""Monitor application: owns the analyzer and runs the polling loops."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable

from waytooloud.core.logging_utils import ensure_structured_logger
from waytooloud.core.runtime_helpers import BackgroundTaskManager, PeriodicTask, ShutdownGuard

from ..config import MonitorSettings, normalize_sensitivity
from ..domain import LimitDecision, MonitorState, PeakTracker, SensitivityRange
from ..services import CaptureService, LevelAnalyzer, LimitEvaluator, SoundPlayer
from ..services.limit_evaluator import AlertPlayer
from .limit_store import LimitStore


class MonitorApp:
    """High-level coordinator for loudness monitoring.

    The app is the single owner of the :class:`LevelAnalyzer`; the evaluator
    receives it as a read-only level source.
    """

    def __init__(
        self,
        settings: MonitorSettings,
        *,
        analyzer: LevelAnalyzer | None = None,
        player: AlertPlayer | None = None,
        logger: logging.Logger | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.settings = settings
        base_logger = ensure_structured_logger(logger, fallback_name="Monitor")
        self.logger = base_logger.getChild("App")
        self._clock = clock

        sensitivity = SensitivityRange(settings.min_db, settings.max_db)
        self.state = MonitorState()
        self.state.set_sensitivity(sensitivity)

        self.analyzer = analyzer or LevelAnalyzer(
            base_logger,
            device=settings.device,
            sample_rate=settings.sample_rate,
        )
        self.analyzer.set_sensitivity(sensitivity.min_db, sensitivity.max_db)
        self.capture_service = CaptureService(
            self.analyzer,
            self.logger,
            settings.capture_start_timeout,
            settings.capture_stop_timeout,
        )
        self.peak_tracker = PeakTracker(window=settings.peak_window)
        self.player = player or SoundPlayer(
            settings.sounds_dir,
            base_logger,
            output_device=settings.output_device,
        )
        self.evaluator = LimitEvaluator(
            self.analyzer,
            self.player,
            cooldown=settings.cooldown,
            logger=base_logger,
            clock=clock,
        )
        self.limit_store = LimitStore(settings.limits_file, base_logger)

        self.task_manager = BackgroundTaskManager("MonitorTasks", self.logger)
        self.shutdown_guard = ShutdownGuard(self.logger, timeout=settings.shutdown_timeout)
        self._loops = [
            PeriodicTask("level_refresh", settings.level_refresh_interval, self.refresh_level, self.logger),
            PeriodicTask("peak_refresh", settings.peak_refresh_interval, self.refresh_peak, self.logger),
            PeriodicTask("limit_check", settings.limit_check_interval, self.check_limits, self.logger),
        ]
        if settings.console_output:
            self._loops.append(
                PeriodicTask("status_log", settings.status_interval, self.log_status, self.logger)
            )

        self._stop_event = asyncio.Event()
        self._started = False
        self._shutdown_done = False

        self.logger.debug("Initialized MonitorApp with settings: %s", settings)

    # ------------------------------------------------------------------
    # Lifecycle

    async def start(self) -> bool:
        """Load limits, open the microphone and schedule the loops.

        Returns whether capture started; the app keeps running idle otherwise.
        """
        if self._started:
            return self.capture_service.active
        self._started = True

        self.limit_store.load()
        started = await self.capture_service.start_capture()
        if started:
            self.state.set_active(True)
            self.logger.info(
                "Monitoring started (%.0f Hz, %d limit(s))",
                self.analyzer.sample_rate or 0.0,
                len(self.limit_store.limits),
            )
        else:
            reason = self.capture_service.last_error or "unknown error"
            self.state.set_active(False, f"Microphone unavailable: {reason}")

        for loop in self._loops:
            loop.start(self.task_manager)
        return started

    async def run(self) -> None:
        """Start and block until :meth:`request_stop` is called."""
        await self.start()
        await self._stop_event.wait()

    def request_stop(self) -> None:
        self.logger.debug("Stop requested")
        self._stop_event.set()

    async def shutdown(self) -> None:
        if self._shutdown_done:
            return
        self._shutdown_done = True
        self.logger.debug("Shutdown requested")
        await self.shutdown_guard.start()
        self._stop_event.set()
        for loop in self._loops:
            await loop.stop()
        await self.task_manager.shutdown()
        await self.capture_service.stop_capture()
        close = getattr(self.player, "close", None)
        if callable(close):
            close()
        self.peak_tracker.reset()
        self.state.set_peak(0.0)
        self.state.set_active(False)
        await self.shutdown_guard.cancel()
        self.logger.info("Monitor shutdown complete")

    # ------------------------------------------------------------------
    # Settings surface

    def set_sensitivity(self, min_db: float, max_db: float) -> SensitivityRange:
        """Apply slider bounds and push the new range to the analyzer."""
        min_db, max_db = normalize_sensitivity(min_db, max_db)
        self.analyzer.set_sensitivity(min_db, max_db)
        sensitivity = self.analyzer.get_sensitivity()
        self.state.set_sensitivity(sensitivity)
        self.logger.info("Sensitivity set to %.1f..%.1f dB", sensitivity.min_db, sensitivity.max_db)
        return sensitivity

    # ------------------------------------------------------------------
    # Loop bodies

    def refresh_level(self) -> float:
        level = self.analyzer.get_level()
        self.state.set_level(level)
        return level

    def refresh_peak(self) -> float:
        peak = self.peak_tracker.update(self.state.level, self._clock())
        if self.peak_tracker.dirty:
            self.state.set_peak(self.peak_tracker.displayed_peak)
            self.peak_tracker.clear_dirty()
        return peak

    def check_limits(self) -> list[LimitDecision]:
        if self.limit_store.refresh():
            self.logger.debug("Limits reloaded (%d definition(s))", len(self.limit_store.limits))
        return self.evaluator.evaluate(self.limit_store.limits)

    def log_status(self) -> None:
        if not self.state.active:
            return
        self.logger.info("Level %5.1f | Peak %5.1f", self.state.level, self.state.peak)


__all__ = ["MonitorApp"]
