"""Domain models and pure logic for the monitor module."""

from .constants import (
    DEFAULT_MAX_DB,
    DEFAULT_MIN_DB,
    FFT_SIZE,
    LIMIT_COOLDOWN_SECONDS,
    PEAK_CHANGE_THRESHOLD,
    PEAK_WINDOW_SECONDS,
    SMOOTHING_TIME_CONSTANT,
    WEEKDAY_NAMES,
)
from .entities import (
    AudioDeviceInfo,
    LimitAction,
    LimitDecision,
    LimitDefinition,
    MonitorSnapshot,
    PeakEntry,
    SensitivityRange,
    TriggerState,
)
from .errors import CaptureUnavailable, PlaybackError
from .limit_window import is_limit_active, is_time_active, parse_minute_of_day, weekday_name
from .loudness import db_to_level, level_from_bins
from .peak_tracker import PeakTracker
from .state import MonitorState
from .weighting import a_weight, a_weight_curve

__all__ = [
    "AudioDeviceInfo",
    "CaptureUnavailable",
    "LimitAction",
    "LimitDecision",
    "LimitDefinition",
    "MonitorSnapshot",
    "MonitorState",
    "PeakEntry",
    "PeakTracker",
    "PlaybackError",
    "SensitivityRange",
    "TriggerState",
    "a_weight",
    "a_weight_curve",
    "db_to_level",
    "is_limit_active",
    "is_time_active",
    "level_from_bins",
    "parse_minute_of_day",
    "weekday_name",
    "DEFAULT_MIN_DB",
    "DEFAULT_MAX_DB",
    "FFT_SIZE",
    "LIMIT_COOLDOWN_SECONDS",
    "PEAK_CHANGE_THRESHOLD",
    "PEAK_WINDOW_SECONDS",
    "SMOOTHING_TIME_CONSTANT",
    "WEEKDAY_NAMES",
]
