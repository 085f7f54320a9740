"""Service layer for the monitor module."""

from .analyser import FrequencyAnalyser
from .capture_service import CaptureService
from .devices import list_input_devices
from .level_analyzer import CaptureSession, LevelAnalyzer
from .limit_evaluator import LimitEvaluator
from .playback import SoundPlayer

__all__ = [
    "CaptureService",
    "CaptureSession",
    "FrequencyAnalyser",
    "LevelAnalyzer",
    "LimitEvaluator",
    "SoundPlayer",
    "list_input_devices",
]
