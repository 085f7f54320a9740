"""Core data structures for the monitor domain layer."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Mapping

from .constants import DEFAULT_MAX_DB, DEFAULT_MIN_DB


@dataclass(slots=True, frozen=True)
class AudioDeviceInfo:
    device_id: int
    name: str
    channels: int
    sample_rate: float


@dataclass(slots=True, frozen=True)
class SensitivityRange:
    """dB bounds mapped onto the 0-100 level scale.

    ``min_db < max_db`` is expected but not enforced; an inverted range simply
    produces an inverted mapping.
    """

    min_db: float = DEFAULT_MIN_DB
    max_db: float = DEFAULT_MAX_DB

    @property
    def span(self) -> float:
        return self.max_db - self.min_db


@dataclass(slots=True, frozen=True)
class PeakEntry:
    value: float
    timestamp: float


@dataclass(slots=True, frozen=True)
class LimitDefinition:
    """A user-defined alert rule: weekday/time window, threshold and sound."""

    id: str
    name: str
    timeframe_from: str
    timeframe_to: str
    weekdays: frozenset[str] = field(default_factory=frozenset)
    sound_file: str = ""
    db_threshold: float = 0.0

    @classmethod
    def create(
        cls,
        id: str,
        name: str,
        timeframe_from: str,
        timeframe_to: str,
        weekdays: Iterable[str],
        sound_file: str = "",
        db_threshold: float = 0.0,
    ) -> "LimitDefinition":
        return cls(
            id=id,
            name=name,
            timeframe_from=timeframe_from,
            timeframe_to=timeframe_to,
            weekdays=frozenset(weekdays),
            sound_file=sound_file,
            db_threshold=float(db_threshold),
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "LimitDefinition":
        """Build a definition from the camelCase mapping stored in ``limits.json``."""
        limit_id = str(data.get("id") or "").strip()
        if not limit_id:
            raise ValueError("limit definition is missing an id")
        weekdays = data.get("weekdays") or ()
        if isinstance(weekdays, str):
            weekdays = (weekdays,)
        return cls(
            id=limit_id,
            name=str(data.get("name") or ""),
            timeframe_from=str(data.get("timeframeFrom") or ""),
            timeframe_to=str(data.get("timeframeTo") or ""),
            weekdays=frozenset(str(day) for day in weekdays),
            sound_file=str(data.get("soundFile") or ""),
            db_threshold=float(data.get("dbThreshold", 0.0)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "timeframeFrom": self.timeframe_from,
            "timeframeTo": self.timeframe_to,
            "weekdays": sorted(self.weekdays),
            "soundFile": self.sound_file,
            "dbThreshold": self.db_threshold,
        }


@dataclass(slots=True)
class TriggerState:
    """Per-limit firing state owned by the limit evaluator."""

    last_fired_at: float | None = None
    is_playing: bool = False


class LimitAction(str, Enum):
    NONE = "none"
    FIRE = "fire"


@dataclass(slots=True, frozen=True)
class LimitDecision:
    limit_id: str
    action: LimitAction = LimitAction.NONE
    sound_file: str | None = None

    @property
    def fired(self) -> bool:
        return self.action is LimitAction.FIRE


@dataclass(slots=True, frozen=True)
class MonitorSnapshot:
    active: bool
    level: float
    peak: float
    sensitivity: SensitivityRange
    status_text: str


__all__ = [
    "AudioDeviceInfo",
    "LimitAction",
    "LimitDecision",
    "LimitDefinition",
    "MonitorSnapshot",
    "PeakEntry",
    "SensitivityRange",
    "TriggerState",
]
