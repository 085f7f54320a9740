"""Task helpers for the monitor runtime: tracked tasks, timers, shutdown guard."""

from __future__ import annotations

import asyncio
import inspect
import logging
import os
from typing import Any, Awaitable, Callable, Optional, Set, Union

from .logging_utils import get_module_logger

TickCallback = Callable[[], Union[None, Awaitable[None]]]


class BackgroundTaskManager:
    """Track background tasks spawned by the app and cancel them safely."""

    def __init__(self, name: str = "BackgroundTasks", logger: Optional[logging.Logger] = None) -> None:
        self._name = name
        self._logger = logger or get_module_logger(name)
        self._tasks: Set[asyncio.Task] = set()
        self._closing = False

    def create(self, coro: Awaitable, *, name: Optional[str] = None) -> asyncio.Task:
        if self._closing:
            raise RuntimeError(f"{self._name} is closing; refusing to create new tasks")
        loop = asyncio.get_running_loop()
        task = loop.create_task(coro, name=name or getattr(coro, "__name__", None))
        self._register(task)
        return task

    def _register(self, task: asyncio.Task) -> None:
        self._tasks.add(task)

        def _on_done(t: asyncio.Task) -> None:
            self._tasks.discard(t)
            if t.cancelled():
                return
            exc = t.exception()
            if exc:
                self._logger.error("%s task %s failed: %s", self._name, t.get_name(), exc, exc_info=exc)

        task.add_done_callback(_on_done)

    async def shutdown(self, *, timeout: float = 5.0) -> bool:
        self._closing = True
        pending = [task for task in self._tasks if not task.done()]
        if not pending:
            return True
        for task in pending:
            task.cancel()
        try:
            await asyncio.wait_for(asyncio.gather(*pending, return_exceptions=True), timeout=timeout)
            return True
        except asyncio.TimeoutError:
            still_pending = [t.get_name() or f"Task@{id(t):x}" for t in pending if not t.done()]
            self._logger.warning(
                "%s timeout cancelling %d task(s): %s",
                self._name,
                len(still_pending),
                ", ".join(still_pending),
            )
            return False


class PeriodicTask:
    """Invoke ``callback`` every ``interval`` seconds until stopped.

    The callback may be a plain function or a coroutine function. Exceptions
    raised by a tick are logged and the timer keeps running.
    """

    def __init__(
        self,
        name: str,
        interval: float,
        callback: TickCallback,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        if interval <= 0:
            raise ValueError(f"interval must be positive (got {interval!r})")
        self.name = name
        self.interval = float(interval)
        self._callback = callback
        self._logger = logger or get_module_logger(name)
        self._task: Optional[asyncio.Task] = None
        self._failures = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def failures(self) -> int:
        return self._failures

    def start(self, manager: Optional[BackgroundTaskManager] = None) -> asyncio.Task:
        if self.running:
            assert self._task is not None
            return self._task
        coro = self._run()
        if manager is not None:
            self._task = manager.create(coro, name=self.name)
        else:
            self._task = asyncio.get_running_loop().create_task(coro, name=self.name)
        self._logger.debug("%s running every %.3fs", self.name, self.interval)
        return self._task

    async def stop(self) -> None:
        task = self._task
        self._task = None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            await self.tick()

    async def tick(self) -> None:
        """Run the callback once, logging (not raising) failures."""
        try:
            result: Any = self._callback()
            if inspect.isawaitable(result):
                await result
        except asyncio.CancelledError:
            raise
        except Exception:
            self._failures += 1
            if self._failures == 1 or self._failures % 100 == 0:
                self._logger.exception("%s tick failed (%d failure(s))", self.name, self._failures)


class ShutdownGuard:
    """Abort the process if cleanup takes too long."""

    def __init__(self, logger: Optional[logging.Logger] = None, *, timeout: float = 15.0, exit_code: int = 101) -> None:
        self._logger = logger or get_module_logger("ShutdownGuard")
        self._timeout = max(0.5, float(timeout))
        self._exit_code = exit_code
        self._task: Optional[asyncio.Task] = None

    async def start(self) -> None:
        if self._task and not self._task.done():
            return
        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._guard_loop(), name="ShutdownGuard")

    async def cancel(self) -> None:
        task = self._task
        if not task:
            return
        if not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._task = None

    async def _guard_loop(self) -> None:
        try:
            await asyncio.sleep(self._timeout)
        except asyncio.CancelledError:  # pragma: no cover - normal cancellation path
            return
        self._logger.error("Shutdown guard triggered after %.1fs; forcing exit", self._timeout)
        os._exit(self._exit_code)


__all__ = ["BackgroundTaskManager", "PeriodicTask", "ShutdownGuard", "TickCallback"]
