"""Threshold evaluation of limit definitions against the current level."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import replace
from datetime import datetime
from typing import Callable, Iterable, Protocol

from waytooloud.core.logging_utils import ensure_structured_logger

from ..domain import (
    LimitAction,
    LimitDecision,
    LimitDefinition,
    TriggerState,
    is_limit_active,
)
from ..domain.constants import LIMIT_COOLDOWN_SECONDS
from .playback import PlaybackCallback


class LevelSource(Protocol):
    def is_active(self) -> bool: ...

    def get_level(self) -> float: ...


class AlertPlayer(Protocol):
    def play(self, sound_file: str, on_finished: PlaybackCallback | None = None): ...


class LimitEvaluator:
    """Decide, once per tick, which limits fire an alert sound.

    A limit fires when it is inside its weekday/time window, has a sound,
    the level is at or above its threshold, no alert for it is still playing,
    and ``cooldown`` seconds of ``clock`` time have elapsed since it last
    fired. Local wall time only selects the window, so DST shifts never
    stretch the cooldown. Trigger state is keyed by limit id and survives
    edits to the definition.
    """

    def __init__(
        self,
        level_source: LevelSource,
        player: AlertPlayer | None = None,
        *,
        cooldown: float = LIMIT_COOLDOWN_SECONDS,
        logger: logging.Logger | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        base_logger = ensure_structured_logger(logger, fallback_name="Monitor")
        self.logger = base_logger.getChild("LimitEvaluator")
        self.level_source = level_source
        self.player = player
        self.cooldown = float(cooldown)
        self._clock = clock
        self._states: dict[str, TriggerState] = {}
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Evaluation

    def evaluate(self, limits: Iterable[LimitDefinition], now: datetime | None = None) -> list[LimitDecision]:
        """Evaluate ``limits`` in order; returns ``[]`` when capture is idle."""
        if not self.level_source.is_active():
            return []
        level = self.level_source.get_level()
        now = now or datetime.now()

        decisions: list[LimitDecision] = []
        for limit in limits:
            try:
                decision = self._evaluate_one(limit, level, now)
            except Exception:
                self.logger.exception("Evaluating limit %r failed", getattr(limit, "id", limit))
                decision = LimitDecision(str(getattr(limit, "id", "")))
            decisions.append(decision)
        return decisions

    def _evaluate_one(self, limit: LimitDefinition, level: float, now: datetime) -> LimitDecision:
        if not (is_limit_active(limit, now) and limit.sound_file and level >= limit.db_threshold):
            return LimitDecision(limit.id)
        if not self._claim(limit.id):
            return LimitDecision(limit.id)

        self.logger.info(
            "Limit \"%s\" triggered: %.1f >= %.1f",
            limit.name or limit.id,
            level,
            limit.db_threshold,
        )
        self._dispatch(limit)
        return LimitDecision(limit.id, LimitAction.FIRE, limit.sound_file)

    def _claim(self, limit_id: str) -> bool:
        """Atomically check the guards and mark ``limit_id`` as playing."""
        with self._lock:
            state = self._states.setdefault(limit_id, TriggerState())
            if state.is_playing:
                return False
            fired_at = self._clock()
            if state.last_fired_at is not None and fired_at - state.last_fired_at < self.cooldown:
                return False
            state.is_playing = True
            state.last_fired_at = fired_at
            return True

    def _dispatch(self, limit: LimitDefinition) -> None:
        if self.player is None:
            return
        limit_id = limit.id
        try:
            self.player.play(
                limit.sound_file,
                on_finished=lambda error: self.mark_playback_finished(limit_id, error),
            )
        except Exception as exc:
            self.mark_playback_finished(limit_id, exc)

    # ------------------------------------------------------------------
    # Playback completion

    def mark_playback_finished(self, limit_id: str, error: BaseException | None = None) -> None:
        """Clear the in-flight flag for ``limit_id``; must run after every playback."""
        with self._lock:
            state = self._states.setdefault(limit_id, TriggerState())
            state.is_playing = False
        if error is not None:
            self.logger.warning("Alert playback for limit %s failed: %s", limit_id, error)

    # ------------------------------------------------------------------
    # Inspection

    def trigger_state(self, limit_id: str) -> TriggerState:
        with self._lock:
            state = self._states.get(limit_id)
            return replace(state) if state is not None else TriggerState()

    def is_playing(self, limit_id: str) -> bool:
        return self.trigger_state(limit_id).is_playing


__all__ = ["AlertPlayer", "LevelSource", "LimitEvaluator"]
