from __future__ import annotations

import asyncio
import logging

from src.infrastructure.cache.query_cache import QueryCache

logger = logging.getLogger(__name__)


class CachePoller:
    """Periodically refetches the queries a session has loaded."""

    def __init__(self, cache: QueryCache, *, interval_seconds: float) -> None:
        self.cache = cache
        self.interval_seconds = interval_seconds
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.interval_seconds <= 0 or self.running:
            return
        self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                await self.cache.refresh_all()
            except Exception as exc:
                logger.error("Cache polling iteration failed: %s", exc, exc_info=True)
