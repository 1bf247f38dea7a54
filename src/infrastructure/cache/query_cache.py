from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Hashable

logger = logging.getLogger(__name__)

QueryKey = tuple[Hashable, ...]
Fetcher = Callable[[], Awaitable[Any]]


class QueryKeys:
    """Cache keys mirror the backend path they are fetched from."""

    ACCESS_REQUESTS: QueryKey = ("/api/access-requests",)
    APPROVAL_REQUESTS: QueryKey = ("/api/approval-requests",)
    COMPANIES: QueryKey = ("/api/companies",)
    OPERATIONS_STATS: QueryKey = ("/api/operations/stats",)
    BUDGET_SUMMARY: QueryKey = ("/api/operations/budget-summary",)


@dataclass(slots=True)
class CacheEntry:
    data: Any
    fetched_at: float
    stale: bool = False


class QueryCache:
    """
    Read replica of backend queries for one operator session.

    Entries become stale after `stale_time` seconds or on explicit invalidation.
    Concurrent fetches of the same key share a single in-flight request.
    """

    def __init__(
        self,
        *,
        stale_time: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.stale_time = stale_time
        self._clock = clock
        self._fetchers: dict[QueryKey, Fetcher] = {}
        self._entries: dict[QueryKey, CacheEntry] = {}
        self._inflight: dict[QueryKey, asyncio.Task] = {}

    def register(self, key: QueryKey, fetcher: Fetcher) -> None:
        self._fetchers[key] = fetcher

    @property
    def keys(self) -> list[QueryKey]:
        return list(self._fetchers)

    def peek(self, key: QueryKey) -> Any | None:
        entry = self._entries.get(key)
        return entry.data if entry else None

    def is_stale(self, key: QueryKey) -> bool:
        entry = self._entries.get(key)
        if entry is None or entry.stale:
            return True
        return self._clock() - entry.fetched_at >= self.stale_time

    async def fetch(self, key: QueryKey, *, force: bool = False) -> Any:
        if not force and not self.is_stale(key):
            return self._entries[key].data
        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._load(key))
            self._inflight[key] = task
            task.add_done_callback(lambda _t, k=key: self._inflight.pop(k, None))
        return await asyncio.shield(task)

    async def _load(self, key: QueryKey) -> Any:
        fetcher = self._fetchers.get(key)
        if fetcher is None:
            raise KeyError(f"No fetcher registered for query {key!r}")
        started = self._clock()
        data = await fetcher()
        self._entries[key] = CacheEntry(data=data, fetched_at=self._clock())
        logger.debug("Query %s refreshed in %.3fs", key[0], self._clock() - started)
        return data

    async def invalidate(self, *keys: QueryKey) -> None:
        """Mark keys stale and refetch the ones that were already loaded."""
        to_refresh: list[QueryKey] = []
        for key in keys:
            entry = self._entries.get(key)
            if entry is None:
                continue
            entry.stale = True
            if key in self._fetchers:
                to_refresh.append(key)
        for key in to_refresh:
            try:
                await self.fetch(key, force=True)
            except Exception as exc:
                # Entry stays stale; the next read goes to the network again
                logger.warning("Refetch after invalidation failed for %s: %s", key[0], exc)

    async def refresh_all(self) -> None:
        for key in list(self._entries):
            try:
                await self.fetch(key, force=True)
            except Exception as exc:
                logger.warning("Polling refresh failed for %s: %s", key[0], exc)
