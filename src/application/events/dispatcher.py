from __future__ import annotations

import logging
from typing import Iterable

from src.application.events.models import (
    AccessRequestApprovedEvent,
    AccessRequestRejectedEvent,
    ApprovalRequestReviewedEvent,
    StaleRequestDetectedEvent,
    UserProvisionedEvent,
)
from src.infrastructure.cache.query_cache import QueryCache, QueryKey, QueryKeys

logger = logging.getLogger(__name__)

# Lists and aggregate counters that change when an access request is decided
_ACCESS_REQUEST_QUERIES: tuple[QueryKey, ...] = (
    QueryKeys.ACCESS_REQUESTS,
    QueryKeys.APPROVAL_REQUESTS,
    QueryKeys.OPERATIONS_STATS,
    QueryKeys.BUDGET_SUMMARY,
)


def related_queries(event: object) -> tuple[QueryKey, ...]:
    if isinstance(event, AccessRequestApprovedEvent):
        keys = _ACCESS_REQUEST_QUERIES
        if event.company_id is not None:
            keys += (QueryKeys.COMPANIES,)
        return keys
    if isinstance(event, AccessRequestRejectedEvent):
        return _ACCESS_REQUEST_QUERIES
    if isinstance(event, UserProvisionedEvent):
        return (QueryKeys.OPERATIONS_STATS,)
    if isinstance(event, ApprovalRequestReviewedEvent):
        return (QueryKeys.APPROVAL_REQUESTS, QueryKeys.OPERATIONS_STATS, QueryKeys.BUDGET_SUMMARY)
    if isinstance(event, StaleRequestDetectedEvent):
        if event.kind == "approval_request":
            return (QueryKeys.APPROVAL_REQUESTS,)
        return (QueryKeys.ACCESS_REQUESTS, QueryKeys.APPROVAL_REQUESTS)
    return ()


async def dispatch_events(cache: QueryCache, events: Iterable[object]) -> None:
    """
    Dispatch events after a mutation settles: every affected query is
    invalidated and refetched at once instead of waiting for the next poll.
    """
    events = list(events)
    if not events:
        return

    keys: list[QueryKey] = []
    for event in events:
        for key in related_queries(event):
            if key not in keys:
                keys.append(key)
        logger.info("Dispatching %s", type(event).__name__)

    try:
        await cache.invalidate(*keys)
    except Exception as e:
        logger.error("Error invalidating queries %s: %s", keys, e, exc_info=True)
