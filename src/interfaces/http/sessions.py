from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable
from uuid import uuid4

from src.application.errors import AuthError
from src.application.interfaces.backend import FieldOpsBackend
from src.application.operator_context import OperatorContext
from src.application.workflow.coordinator import ApprovalWorkflowCoordinator
from src.config.settings import Settings
from src.infrastructure.cache.query_cache import QueryCache
from src.infrastructure.scheduler.cache_polling import CachePoller
from src.infrastructure.services.notification_service import NotificationService

logger = logging.getLogger(__name__)

# Upper bound between two idle sweeps
MAX_SWEEP_INTERVAL_SECONDS = 60.0


@dataclass(slots=True)
class ConsoleSession:
    id: str
    operator: OperatorContext
    coordinator: ApprovalWorkflowCoordinator
    cache: QueryCache
    poller: CachePoller
    last_seen_at: float
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class SessionRegistry:
    """
    Open operator sessions. Each one owns its cache, poller and workflow state.

    A session not used for `session_idle_timeout_seconds` is refused on lookup
    and closed by `expire_idle`, which the sweeper task runs periodically.
    """

    def __init__(
        self,
        *,
        settings: Settings,
        backend: FieldOpsBackend,
        notifications: NotificationService,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.settings = settings
        self.backend = backend
        self.notifications = notifications
        self._clock = clock
        self._sessions: dict[str, ConsoleSession] = {}
        self._sweeper: asyncio.Task | None = None

    def __len__(self) -> int:
        return len(self._sessions)

    def open(self, operator: OperatorContext) -> ConsoleSession:
        session_id = uuid4().hex
        cache = QueryCache(stale_time=self.settings.stale_time_seconds)
        coordinator = ApprovalWorkflowCoordinator(
            session_id=session_id,
            operator=operator,
            backend=self.backend,
            cache=cache,
            notifications=self.notifications,
            legacy_review=self.settings.uses_legacy_review,
        )
        poller = CachePoller(cache, interval_seconds=self.settings.poll_interval_seconds)
        poller.start()
        session = ConsoleSession(
            id=session_id,
            operator=operator,
            coordinator=coordinator,
            cache=cache,
            poller=poller,
            last_seen_at=self._clock(),
        )
        self._sessions[session_id] = session
        logger.info(
            "Console session opened: session=%s user=%s role=%s",
            session_id,
            operator.user_id,
            operator.role.value,
        )
        return session

    def get(self, session_id: str) -> ConsoleSession:
        session = self._sessions.get(session_id)
        now = self._clock()
        if session is None or self._is_idle(session, now):
            raise AuthError("Unknown or expired console session")
        session.last_seen_at = now
        return session

    async def close(self, session_id: str) -> None:
        session = self._sessions.pop(session_id, None)
        if session is None:
            raise AuthError("Unknown or expired console session")
        await self._shutdown(session)
        logger.info("Console session closed: session=%s", session_id)

    async def close_all(self) -> None:
        await self.stop_sweeper()
        for session_id in list(self._sessions):
            await self.close(session_id)

    async def expire_idle(self) -> list[str]:
        now = self._clock()
        expired = [s for s in self._sessions.values() if self._is_idle(s, now)]
        for session in expired:
            self._sessions.pop(session.id, None)
            await self._shutdown(session)
        if expired:
            logger.info(
                "Expired %d idle console session(s); %d still open", len(expired), len(self)
            )
        return [s.id for s in expired]

    def start_sweeper(self) -> None:
        timeout = self.settings.session_idle_timeout_seconds
        if timeout <= 0 or (self._sweeper is not None and not self._sweeper.done()):
            return
        self._sweeper = asyncio.create_task(
            self._sweep(min(timeout, MAX_SWEEP_INTERVAL_SECONDS))
        )

    async def stop_sweeper(self) -> None:
        task, self._sweeper = self._sweeper, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    def _is_idle(self, session: ConsoleSession, now: float) -> bool:
        timeout = self.settings.session_idle_timeout_seconds
        return timeout > 0 and now - session.last_seen_at >= timeout

    async def _shutdown(self, session: ConsoleSession) -> None:
        await session.poller.stop()
        self.notifications.discard_session(session.id)

    async def _sweep(self, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            try:
                await self.expire_idle()
            except Exception as exc:
                logger.error("Idle session sweep failed: %s", exc, exc_info=True)
