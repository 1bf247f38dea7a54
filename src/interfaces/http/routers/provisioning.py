from __future__ import annotations

from fastapi import APIRouter, Depends, Response

from src.application.workflow.coordinator import ApprovalWorkflowCoordinator
from src.domain.models.selection import Provisioning
from src.interfaces.http.deps import get_coordinator
from src.interfaces.http.schemas.actions import ActionResultResponse
from src.interfaces.http.schemas.provisioning import (
    CompanySchema,
    ProvisioningDraftSchema,
    ProvisioningFormPayload,
    ProvisioningPrefillSchema,
    ProvisioningStateResponse,
)

router = APIRouter(prefix="/provisioning", tags=["provisioning"])


@router.get("", response_model=ProvisioningStateResponse)
async def get_provisioning(
    coordinator: ApprovalWorkflowCoordinator = Depends(get_coordinator),
) -> ProvisioningStateResponse:
    selection = coordinator.selection
    if not isinstance(selection, Provisioning):
        return ProvisioningStateResponse(active=False)
    companies = await coordinator.companies()
    return ProvisioningStateResponse(
        active=True,
        request_id=selection.request_id,
        prefill=ProvisioningPrefillSchema.model_validate(selection.prefill),
        draft=(
            ProvisioningDraftSchema.model_validate(selection.draft)
            if selection.draft is not None
            else None
        ),
        created_user_id=selection.created_user_id,
        companies=[CompanySchema.model_validate(c) for c in companies],
    )


@router.post("/submit", response_model=ActionResultResponse)
async def submit_provisioning(
    payload: ProvisioningFormPayload,
    response: Response,
    coordinator: ApprovalWorkflowCoordinator = Depends(get_coordinator),
) -> ActionResultResponse:
    result = await coordinator.submit_provisioning(payload.to_form())
    response.status_code = result.status_code
    return ActionResultResponse.from_result(result)


@router.post("/cancel", response_model=ActionResultResponse)
async def cancel_provisioning(
    response: Response,
    coordinator: ApprovalWorkflowCoordinator = Depends(get_coordinator),
) -> ActionResultResponse:
    result = coordinator.cancel_provisioning()
    response.status_code = result.status_code
    return ActionResultResponse.from_result(result)
