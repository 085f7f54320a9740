"""Configuration helpers for the monitor."""

from .settings import (
    MonitorSettings,
    build_arg_parser,
    normalize_sensitivity,
    parse_cli_args,
    read_config_file,
    resolve_log_level,
)

__all__ = [
    "MonitorSettings",
    "build_arg_parser",
    "normalize_sensitivity",
    "parse_cli_args",
    "read_config_file",
    "resolve_log_level",
]
