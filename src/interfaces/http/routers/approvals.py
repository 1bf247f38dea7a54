from __future__ import annotations

from fastapi import APIRouter, Depends

from src.application.use_cases.approvals.pending_summary import PendingSummary
from src.application.workflow.coordinator import ApprovalWorkflowCoordinator
from src.interfaces.http.deps import get_coordinator
from src.interfaces.http.schemas.approvals import (
    AccessRequestSchema,
    ApprovalRequestSchema,
    ApprovalsResponse,
    OverviewResponse,
    PendingCountSchema,
)

router = APIRouter(tags=["approvals"])


def _pending(summary: PendingSummary) -> PendingCountSchema:
    return PendingCountSchema(
        pending_access=summary.pending_access,
        pending_approvals=summary.pending_approvals,
        total=summary.total,
    )


@router.get("/approvals", response_model=ApprovalsResponse)
async def list_approvals(
    refresh: bool = False,
    coordinator: ApprovalWorkflowCoordinator = Depends(get_coordinator),
) -> ApprovalsResponse:
    """Pending access requests, approval items visible to the role, and the badge count."""
    summary = await coordinator.pending_summary(refresh=refresh)
    access = [
        AccessRequestSchema.model_validate(r).model_copy(
            update={"phase": coordinator.phase_of(r.id), "busy": coordinator.is_busy(r.id)}
        )
        for r in await coordinator.access_requests()
        if r.is_pending
    ]
    approvals = [
        ApprovalRequestSchema.model_validate(r)
        for r in await coordinator.visible_approval_requests()
    ]
    return ApprovalsResponse(
        access_requests=access,
        approval_requests=approvals,
        pending=_pending(summary),
    )


@router.get("/overview", response_model=OverviewResponse)
async def operations_overview(
    coordinator: ApprovalWorkflowCoordinator = Depends(get_coordinator),
) -> OverviewResponse:
    summary = await coordinator.pending_summary()
    overview = await coordinator.operations_overview()
    return OverviewResponse(
        pending=_pending(summary),
        stats=overview["stats"],
        budget_summary=overview["budget_summary"],
    )
