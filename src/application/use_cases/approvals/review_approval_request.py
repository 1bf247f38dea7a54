from __future__ import annotations

from enum import Enum

from src.application.errors import InvalidStateError, PermissionDenied
from src.application.interfaces.backend import FieldOpsBackend
from src.application.operator_context import OperatorContext
from src.domain.models.approval_request import ApprovalRequest
from src.domain.value_objects.request_status import ApprovalStatus

# Denials go over the wire with the backend's historical status name
_WIRE_STATUS = {"approve": "approved", "deny": "rejected"}


class ReviewDecision(str, Enum):
    APPROVE = "approve"
    DENY = "deny"


def ensure_can_review(operator: OperatorContext, request: ApprovalRequest) -> None:
    if request.type not in operator.role.reviewable_approval_types():
        raise PermissionDenied(
            "Role not allowed to review this type of request",
            details={"type": request.type.value, "role": operator.role.value},
        )


async def execute(
    backend: FieldOpsBackend,
    operator: OperatorContext,
    request: ApprovalRequest,
    decision: ReviewDecision,
    *,
    notes: str | None = None,
) -> ApprovalRequest:
    ensure_can_review(operator, request)
    if request.status.is_terminal:
        raise InvalidStateError(
            f"Approval request already {request.status.value}",
            details={"request_id": request.id, "status": request.status.value},
        )
    if decision is ReviewDecision.DENY and notes is None:
        notes = "Request denied by reviewer"
    updated = await backend.review_approval_request(
        request.id, status=_WIRE_STATUS[decision.value], notes=notes
    )
    if updated.status is ApprovalStatus.PENDING:
        if decision is ReviewDecision.APPROVE:
            updated.approve(notes)
        else:
            updated.deny(notes)
    return updated
