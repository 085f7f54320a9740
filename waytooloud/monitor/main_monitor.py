"""Loudness monitor entry point."""

from __future__ import annotations

import asyncio
import os
from pathlib import Path
from typing import Optional

from waytooloud.cli.common import install_signal_handlers
from waytooloud.core.logging_config import configure_logging
from waytooloud.core.logging_utils import get_module_logger
from waytooloud.monitor.app import MonitorApp
from waytooloud.monitor.config import MonitorSettings, parse_cli_args, resolve_log_level
from waytooloud.monitor.services import list_input_devices

CONFIG_ENV_VAR = "WAYTOOLOUD_CONFIG"
DEFAULT_CONFIG_NAME = "config.txt"

logger = get_module_logger("Monitor")

_DEFAULT_LOG_LEVEL = MonitorSettings().log_level.lower()


def resolve_config_path() -> Path:
    override = os.environ.get(CONFIG_ENV_VAR, "").strip()
    if override:
        return Path(override).expanduser()
    return Path.cwd() / DEFAULT_CONFIG_NAME


def parse_args(argv: Optional[list[str]] = None):
    return parse_cli_args(argv, config_path=resolve_config_path())


def print_input_devices() -> int:
    try:
        devices = list_input_devices()
    except Exception as exc:
        logger.error("Cannot query audio devices: %s", exc)
        return 1
    if not devices:
        print("No input devices found")
        return 0
    for device in devices:
        print(f"{device.device_id:3d}  {device.name}  ({device.channels} ch, {device.sample_rate:.0f} Hz)")
    return 0


async def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)

    requested_level = str(getattr(args, "log_level", "") or "")
    effective_level, invalid_level = resolve_log_level(requested_level, _DEFAULT_LOG_LEVEL)
    configure_logging(
        level=effective_level,
        console=getattr(args, "console_output", True),
        log_file=getattr(args, "log_file", None),
    )
    if requested_level and invalid_level:
        logger.warning(
            "Unknown log level '%s'; defaulting to %s",
            requested_level,
            effective_level,
        )
    logger.debug(
        "Monitor entry configured (console=%s, log_file=%s)",
        getattr(args, "console_output", True),
        getattr(args, "log_file", None),
    )

    if getattr(args, "list_devices", False):
        return print_input_devices()

    settings = MonitorSettings.from_args(args)
    settings.log_level = effective_level
    app = MonitorApp(settings, logger=logger)

    loop = asyncio.get_running_loop()
    install_signal_handlers(app, loop)

    try:
        await app.run()
    finally:
        await app.shutdown()
    return 0


def cli() -> int:
    """Console-script wrapper."""
    try:
        return asyncio.run(main())
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    raise SystemExit(cli())
