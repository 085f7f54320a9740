"""Read-only loader for the ``limits.json`` limit list."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from waytooloud.core.logging_utils import ensure_structured_logger

from ..domain import LimitDefinition


class LimitStore:
    """Load limit definitions and reload them when the file changes on disk."""

    def __init__(self, path: Path, logger: logging.Logger | None = None) -> None:
        base_logger = ensure_structured_logger(logger, fallback_name="Monitor")
        self.logger = base_logger.getChild("LimitStore")
        self.path = Path(path)
        self._limits: list[LimitDefinition] = []
        self._mtime: float | None = None
        self._missing_logged = False

    @property
    def limits(self) -> list[LimitDefinition]:
        return list(self._limits)

    def load(self) -> list[LimitDefinition]:
        """Read the file now; a broken file keeps the previous list."""
        try:
            stat = self.path.stat()
        except FileNotFoundError:
            if not self._missing_logged:
                self.logger.info("No limits file at %s; monitoring without limits", self.path)
                self._missing_logged = True
            self._limits = []
            self._mtime = None
            return self.limits
        except OSError as exc:
            self.logger.warning("Cannot stat limits file %s: %s", self.path, exc)
            return self.limits

        self._missing_logged = False
        self._mtime = stat.st_mtime
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            self.logger.warning("Ignoring unreadable limits file %s: %s", self.path, exc)
            return self.limits

        if not isinstance(raw, list):
            self.logger.warning("Limits file %s must contain a JSON array; keeping previous limits", self.path)
            return self.limits

        self._limits = self._parse_entries(raw)
        self.logger.info("Loaded %d limit(s) from %s", len(self._limits), self.path)
        return self.limits

    def refresh(self) -> bool:
        """Reload if the file's modification time changed; returns True on reload."""
        try:
            mtime: float | None = self.path.stat().st_mtime
        except FileNotFoundError:
            mtime = None
        except OSError:
            return False
        if mtime == self._mtime and (mtime is not None or not self._limits):
            return False
        self.load()
        return True

    def _parse_entries(self, entries: list[Any]) -> list[LimitDefinition]:
        limits: list[LimitDefinition] = []
        for index, entry in enumerate(entries):
            if not isinstance(entry, dict):
                self.logger.warning("Skipping limit #%d: expected an object", index)
                continue
            try:
                limits.append(LimitDefinition.from_dict(entry))
            except (TypeError, ValueError) as exc:
                self.logger.warning("Skipping limit #%d: %s", index, exc)
        return limits


__all__ = ["LimitStore"]
