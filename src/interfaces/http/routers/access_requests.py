from __future__ import annotations

from fastapi import APIRouter, Depends, Response

from src.application.workflow.coordinator import ApprovalWorkflowCoordinator
from src.interfaces.http.deps import get_coordinator
from src.interfaces.http.schemas.actions import ActionResultResponse
from src.interfaces.http.schemas.approvals import RejectAccessRequestPayload

router = APIRouter(prefix="/access-requests", tags=["access-requests"])


@router.post("/{request_id}/approve", response_model=ActionResultResponse)
async def approve_access_request(
    request_id: str,
    response: Response,
    coordinator: ApprovalWorkflowCoordinator = Depends(get_coordinator),
) -> ActionResultResponse:
    """
    Dev-bypass requests are approved in one backend call. Any other request
    opens the provisioning step instead; approval happens on its submit.
    """
    result = await coordinator.approve(request_id)
    response.status_code = result.status_code
    return ActionResultResponse.from_result(result)


@router.post("/{request_id}/reject", response_model=ActionResultResponse)
async def reject_access_request(
    request_id: str,
    response: Response,
    payload: RejectAccessRequestPayload | None = None,
    coordinator: ApprovalWorkflowCoordinator = Depends(get_coordinator),
) -> ActionResultResponse:
    notes = payload.notes if payload is not None else None
    result = await coordinator.reject(request_id, notes=notes)
    response.status_code = result.status_code
    return ActionResultResponse.from_result(result)
