"""Component-prefixed loggers under the ``waytooloud`` namespace."""

from __future__ import annotations

import logging
from typing import Optional

NAMESPACE = "waytooloud"


def _qualified_name(name: Optional[str]) -> str:
    if not name:
        return NAMESPACE
    if name == NAMESPACE or name.startswith(f"{NAMESPACE}."):
        return name
    return f"{NAMESPACE}.{name}"


def _component_for(name: str) -> str:
    if name.startswith(f"{NAMESPACE}."):
        return name[len(NAMESPACE) + 1:]
    return name or NAMESPACE


class StructuredLogger:
    """Logger wrapper that prefixes every message with ``[Component]``.

    Components nest through ``getChild``, so the limit evaluator under the
    monitor logs as ``[Monitor.LimitEvaluator]``. Anything else (``isEnabledFor``,
    ``handlers``, ...) is forwarded to the wrapped ``logging.Logger``.
    """

    __slots__ = ("_logger", "component")

    def __init__(self, logger: logging.Logger, component: Optional[str] = None) -> None:
        self._logger = logger
        self.component = component or _component_for(logger.name)

    def __getattr__(self, item):
        return getattr(self._logger, item)

    @property
    def name(self) -> str:
        return self._logger.name

    def _emit(self, level: int, message: object, args: tuple, **kwargs) -> None:
        if not self._logger.isEnabledFor(level):
            return
        text = str(message)
        if args:
            try:
                text = text % args
            except (TypeError, ValueError):
                text = f"{text} | args={' '.join(str(arg) for arg in args)}"
        self._logger.log(level, f"[{self.component}] {text}", **kwargs)

    def debug(self, message: object, *args, **kwargs) -> None:
        self._emit(logging.DEBUG, message, args, **kwargs)

    def info(self, message: object, *args, **kwargs) -> None:
        self._emit(logging.INFO, message, args, **kwargs)

    def warning(self, message: object, *args, **kwargs) -> None:
        self._emit(logging.WARNING, message, args, **kwargs)

    def error(self, message: object, *args, **kwargs) -> None:
        self._emit(logging.ERROR, message, args, **kwargs)

    def exception(self, message: object, *args, **kwargs) -> None:
        kwargs.setdefault("exc_info", True)
        self._emit(logging.ERROR, message, args, **kwargs)

    def getChild(self, suffix: str) -> "StructuredLogger":
        return StructuredLogger(self._logger.getChild(suffix), component=f"{self.component}.{suffix}")


def ensure_structured_logger(
    logger: StructuredLogger | logging.Logger | None,
    *,
    fallback_name: Optional[str] = None,
) -> StructuredLogger:
    """Wrap a plain ``logging.Logger``; ``None`` gets a module logger named ``fallback_name``."""
    if isinstance(logger, StructuredLogger):
        return logger
    if isinstance(logger, logging.Logger):
        return StructuredLogger(logger)
    return get_module_logger(fallback_name)


def get_module_logger(name: Optional[str] = None) -> StructuredLogger:
    return StructuredLogger(logging.getLogger(_qualified_name(name)))


__all__ = [
    "StructuredLogger",
    "ensure_structured_logger",
    "get_module_logger",
]
