from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class AccessRequestApprovedEvent:
    request_id: str
    actor_user_id: str
    user_id: str
    company_id: str | None = None
    via_bypass: bool = False


@dataclass(frozen=True)
class AccessRequestRejectedEvent:
    request_id: str
    actor_user_id: str


@dataclass(frozen=True)
class UserProvisionedEvent:
    request_id: str
    actor_user_id: str
    user_id: str


@dataclass(frozen=True)
class ApprovalRequestReviewedEvent:
    request_id: str
    actor_user_id: str
    status: str


@dataclass(frozen=True)
class StaleRequestDetectedEvent:
    """A mutation hit a request that the backend no longer considers pending."""

    request_id: str
    kind: str = "access_request"  # access_request | approval_request
