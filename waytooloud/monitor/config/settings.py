"""Configuration loading + normalization helpers for the monitor."""

from __future__ import annotations

import argparse
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from waytooloud.core.logging_utils import get_module_logger

from ..domain.constants import (
    DEFAULT_MAX_DB,
    DEFAULT_MIN_DB,
    LIMIT_COOLDOWN_SECONDS,
    MAX_DB_BOUNDS,
    MIN_DB_BOUNDS,
    PEAK_WINDOW_SECONDS,
)

logger = get_module_logger(__name__)

_LEVEL_ALIASES = {
    "warn": "warning",
    "fatal": "critical",
    "err": "error",
}
_VALID_LOG_LEVELS = {"debug", "info", "warning", "error", "critical"}


@dataclass(slots=True)
class MonitorSettings:
    """Normalized configuration derived from CLI args and config file."""

    log_level: str = "info"
    log_file: Path | None = None
    console_output: bool = True
    limits_file: Path = Path("limits.json")
    sounds_dir: Path = Path("sounds")
    device: int | str | None = None
    output_device: int | str | None = None
    sample_rate: int | None = None
    min_db: float = DEFAULT_MIN_DB
    max_db: float = DEFAULT_MAX_DB
    level_refresh_interval: float = 1 / 60
    peak_refresh_interval: float = 0.05
    limit_check_interval: float = 0.25
    peak_window: float = PEAK_WINDOW_SECONDS
    cooldown: float = LIMIT_COOLDOWN_SECONDS
    status_interval: float = 1.0
    capture_start_timeout: float = 5.0
    capture_stop_timeout: float = 2.0
    shutdown_timeout: float = 15.0

    @classmethod
    def from_args(cls, args: Any) -> "MonitorSettings":
        """Create a settings instance from an argparse namespace."""

        defaults = cls()

        def _path(name: str, fallback: Path | None) -> Path | None:
            value = getattr(args, name, None)
            if value in (None, ""):
                return fallback
            return value if isinstance(value, Path) else Path(str(value))

        def _float(name: str, fallback: float) -> float:
            value = getattr(args, name, None)
            if value is None:
                return fallback
            try:
                return float(value)
            except (TypeError, ValueError):
                return fallback

        sample_rate = getattr(args, "sample_rate", None)
        min_db, max_db = normalize_sensitivity(
            _float("min_db", defaults.min_db),
            _float("max_db", defaults.max_db),
        )

        return cls(
            log_level=str(getattr(args, "log_level", defaults.log_level) or defaults.log_level),
            log_file=_path("log_file", None),
            console_output=bool(getattr(args, "console_output", defaults.console_output)),
            limits_file=_path("limits_file", defaults.limits_file) or defaults.limits_file,
            sounds_dir=_path("sounds_dir", defaults.sounds_dir) or defaults.sounds_dir,
            device=_normalize_device(getattr(args, "device", None)),
            output_device=_normalize_device(getattr(args, "output_device", None)),
            sample_rate=int(sample_rate) if sample_rate else None,
            min_db=min_db,
            max_db=max_db,
            level_refresh_interval=_positive(_float("level_refresh_interval", defaults.level_refresh_interval), defaults.level_refresh_interval),
            peak_refresh_interval=_positive(_float("peak_refresh_interval", defaults.peak_refresh_interval), defaults.peak_refresh_interval),
            limit_check_interval=_positive(_float("limit_check_interval", defaults.limit_check_interval), defaults.limit_check_interval),
            peak_window=_positive(_float("peak_window", defaults.peak_window), defaults.peak_window),
            cooldown=max(0.0, _float("cooldown", defaults.cooldown)),
            status_interval=_positive(_float("status_interval", defaults.status_interval), defaults.status_interval),
            capture_start_timeout=_positive(_float("capture_start_timeout", defaults.capture_start_timeout), defaults.capture_start_timeout),
            capture_stop_timeout=_positive(_float("capture_stop_timeout", defaults.capture_stop_timeout), defaults.capture_stop_timeout),
            shutdown_timeout=_positive(_float("shutdown_timeout", defaults.shutdown_timeout), defaults.shutdown_timeout),
        )


def normalize_sensitivity(min_db: float, max_db: float) -> tuple[float, float]:
    """Clamp a sensitivity pair to the slider bounds; fall back to defaults if inverted."""
    clamped_min = max(MIN_DB_BOUNDS[0], min(MIN_DB_BOUNDS[1], float(min_db)))
    clamped_max = max(MAX_DB_BOUNDS[0], min(MAX_DB_BOUNDS[1], float(max_db)))
    if (clamped_min, clamped_max) != (min_db, max_db):
        logger.warning(
            "Sensitivity %.1f..%.1f dB clamped to %.1f..%.1f dB",
            min_db,
            max_db,
            clamped_min,
            clamped_max,
        )
    if clamped_min >= clamped_max:
        logger.warning(
            "Sensitivity minimum %.1f dB is not below maximum %.1f dB; using defaults",
            clamped_min,
            clamped_max,
        )
        return DEFAULT_MIN_DB, DEFAULT_MAX_DB
    return clamped_min, clamped_max


def resolve_log_level(value: str | None, default: str = "info") -> tuple[str, bool]:
    """Normalize user-supplied log levels; returns ``(level, was_invalid)``."""

    normalized = (value or "").strip().lower()
    if not normalized:
        return default, False
    normalized = _LEVEL_ALIASES.get(normalized, normalized)
    if normalized in _VALID_LOG_LEVELS:
        return normalized, False
    return default, True


def read_config_file(path: Path) -> dict[str, object]:
    """Load key/value pairs from ``config.txt`` style files."""

    config: dict[str, object] = {}
    if not path.exists():
        return config

    text = path.read_text(encoding="utf-8")
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, value = [part.strip() for part in line.split("=", 1)]
        if not key:
            continue
        lowered = value.lower()
        if lowered in {"true", "yes", "on"}:
            config[key] = True
        elif lowered in {"false", "no", "off"}:
            config[key] = False
        else:
            try:
                if "." in value:
                    config[key] = float(value)
                else:
                    config[key] = int(value)
            except ValueError:
                config[key] = value
    return config


def _config_value(config: Mapping[str, object], key: str, fallback: Any) -> Any:
    value = config.get(key, fallback)
    if isinstance(value, str) and (
        isinstance(fallback, Path)
        or key.endswith("_dir")
        or key.endswith("_file")
    ):
        return Path(value)
    if isinstance(fallback, Path) and value is not None:
        return Path(str(value))
    return value


def build_arg_parser(config: Mapping[str, object]) -> argparse.ArgumentParser:
    """Create the CLI parser with defaults sourced from the config file."""

    defaults = MonitorSettings()
    parser = argparse.ArgumentParser(
        prog="waytooloud",
        description="Monitor ambient loudness and play alert sounds when limits are exceeded",
    )

    parser.add_argument(
        "--limits-file",
        type=Path,
        default=_config_value(config, "limits_file", defaults.limits_file),
        help="JSON file with limit definitions",
    )
    parser.add_argument(
        "--sounds-dir",
        type=Path,
        default=_config_value(config, "sounds_dir", defaults.sounds_dir),
        help="Directory that relative alert sound names are resolved against",
    )
    parser.add_argument(
        "--device",
        type=str,
        default=_config_value(config, "device", defaults.device),
        help="Input device index or name (default: system default)",
    )
    parser.add_argument(
        "--output-device",
        type=str,
        default=_config_value(config, "output_device", defaults.output_device),
        help="Output device index or name for alert sounds",
    )
    parser.add_argument(
        "--sample-rate",
        type=int,
        default=_config_value(config, "sample_rate", defaults.sample_rate),
        help="Input sample rate in Hz (default: device rate)",
    )
    parser.add_argument(
        "--min-db",
        type=float,
        default=_config_value(config, "min_db", defaults.min_db),
        help="Level shown as 0%% (range -100..-30)",
    )
    parser.add_argument(
        "--max-db",
        type=float,
        default=_config_value(config, "max_db", defaults.max_db),
        help="Level shown as 100%% (range -40..0)",
    )
    parser.add_argument(
        "--limit-check-interval",
        type=float,
        default=_config_value(config, "limit_check_interval", defaults.limit_check_interval),
        help="Seconds between limit evaluations",
    )
    parser.add_argument(
        "--peak-window",
        type=float,
        default=_config_value(config, "peak_window", defaults.peak_window),
        help="Seconds of history considered for the peak level",
    )
    parser.add_argument(
        "--status-interval",
        type=float,
        default=_config_value(config, "status_interval", defaults.status_interval),
        help="Seconds between console status lines",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=_config_value(config, "log_level", defaults.log_level),
        help="Logging verbosity",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=_config_value(config, "log_file", defaults.log_file),
        help="Optional explicit log file path",
    )
    parser.add_argument(
        "--list-devices",
        action="store_true",
        help="List input devices and exit",
    )

    console_group = parser.add_mutually_exclusive_group()
    console_group.add_argument(
        "--console",
        dest="console_output",
        action="store_true",
        default=_config_value(config, "console_output", defaults.console_output),
        help="Enable console logging",
    )
    console_group.add_argument(
        "--no-console",
        dest="console_output",
        action="store_false",
        help="Disable console logging",
    )

    return parser


def parse_cli_args(
    argv: list[str] | None = None,
    *,
    config_path: Path,
) -> argparse.Namespace:
    """Parse CLI arguments using configuration defaults."""

    config = read_config_file(config_path)
    parser = build_arg_parser(config)
    return parser.parse_args(argv)


def _normalize_device(value: Any) -> int | str | None:
    if value is None:
        return None
    if isinstance(value, int):
        return value
    text = str(value).strip()
    if not text:
        return None
    return int(text) if text.isdigit() else text


def _positive(value: float, fallback: float) -> float:
    return value if value > 0 else fallback


__all__ = [
    "MonitorSettings",
    "build_arg_parser",
    "normalize_sensitivity",
    "parse_cli_args",
    "read_config_file",
    "resolve_log_level",
]
