from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from src.domain.models.access_request import AccessRequest
from src.domain.models.approval_request import ApprovalRequest
from src.domain.value_objects.role import Role


@dataclass(slots=True, frozen=True)
class PendingSummary:
    pending_access: int
    pending_approvals: int

    @property
    def total(self) -> int:
        return self.pending_access + self.pending_approvals


def summarize(
    access_requests: Iterable[AccessRequest], approval_requests: Iterable[ApprovalRequest]
) -> PendingSummary:
    return PendingSummary(
        pending_access=sum(1 for r in access_requests if r.is_pending),
        pending_approvals=sum(1 for r in approval_requests if r.is_pending),
    )


def visible_for(role: Role, approval_requests: Iterable[ApprovalRequest]) -> list[ApprovalRequest]:
    """Pending approval items the role is allowed to act on."""
    allowed = role.reviewable_approval_types()
    return [r for r in approval_requests if r.is_pending and r.type in allowed]
