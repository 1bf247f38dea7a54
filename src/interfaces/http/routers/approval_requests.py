from __future__ import annotations

from fastapi import APIRouter, Depends, Response

from src.application.workflow.coordinator import ApprovalWorkflowCoordinator
from src.interfaces.http.deps import get_coordinator
from src.interfaces.http.schemas.actions import ActionResultResponse
from src.interfaces.http.schemas.approvals import ReviewApprovalRequestPayload

router = APIRouter(prefix="/approval-requests", tags=["approval-requests"])


@router.post("/{request_id}/review", response_model=ActionResultResponse)
async def review_approval_request(
    request_id: str,
    payload: ReviewApprovalRequestPayload,
    response: Response,
    coordinator: ApprovalWorkflowCoordinator = Depends(get_coordinator),
) -> ActionResultResponse:
    result = await coordinator.review_approval_request(
        request_id, payload.decision, notes=payload.notes
    )
    response.status_code = result.status_code
    return ActionResultResponse.from_result(result)
