from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Coroutine
from typing import Any

logger = logging.getLogger(__name__)


class TaskScope:
    """Owns every background task a dashboard component starts.

    ``aclose`` cancels and awaits all of them, so nothing outlives the component.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._tasks: set[asyncio.Task] = set()
        self._closed = False

    def spawn(self, coro: Coroutine[Any, Any, Any], name: str | None = None) -> asyncio.Task:
        if self._closed:
            coro.close()
            raise RuntimeError(f"Task scope {self.name} is closed")
        task = asyncio.create_task(coro, name=f"{self.name}:{name or 'task'}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    @property
    def active(self) -> int:
        return sum(1 for task in self._tasks if not task.done())

    async def wait(self) -> None:
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def aclose(self) -> None:
        self._closed = True
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()


async def poll_forever(fetch: Callable[[], Awaitable[Any]], interval: float, label: str) -> None:
    while True:
        await asyncio.sleep(interval)
        try:
            await fetch()
        except Exception:
            logger.exception("Polling refresh failed", extra={"poller": label})
