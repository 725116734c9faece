"""Periodic background task on the running event loop."""

from __future__ import annotations

import asyncio
import contextlib
import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Any

logger = logging.getLogger(__name__)


class PeriodicTask:
    """Runs a callback every ``interval`` seconds until stopped.

    The callback may be sync or async. Exceptions raised by it are logged and
    the loop keeps going; only ``stop()`` ends it.
    """

    def __init__(
        self,
        name: str,
        interval: float,
        callback: Callable[[], Any | Awaitable[Any]],
    ) -> None:
        self._name = name
        self._interval = interval
        self._callback = callback
        self._task: asyncio.Task[None] | None = None
        self._runs = 0

    @property
    def name(self) -> str:
        return self._name

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def runs(self) -> int:
        return self._runs

    def start(self) -> None:
        """Schedule the loop. Must be called with a running event loop."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(
            self._loop(), name=f"llmcache:{self._name}"
        )
        logger.debug("Started periodic task '%s' every %.1fs", self._name, self._interval)

    async def stop(self) -> None:
        if self._task is None:
            return
        task, self._task = self._task, None
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        logger.debug("Stopped periodic task '%s' after %d runs", self._name, self._runs)

    async def run_once(self) -> Any:
        result = self._callback()
        if inspect.isawaitable(result):
            result = await result
        self._runs += 1
        return result

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                await self.run_once()
            except Exception:
                logger.exception("Periodic task '%s' failed", self._name)
