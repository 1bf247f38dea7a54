from __future__ import annotations

from src.application.errors import ValidationError
from src.application.interfaces.backend import FieldOpsBackend
from src.application.operator_context import OperatorContext
from src.domain.models.access_request import AccessRequest
from src.domain.value_objects.request_status import AccessRequestStatus


async def execute(
    backend: FieldOpsBackend,
    operator: OperatorContext,
    request_id: str,
    *,
    created_user_id: str | None,
    legacy: bool = False,
    notes: str | None = None,
) -> AccessRequest:
    """Mark an access request approved once its user account exists."""
    operator.require_access_reviewer()
    if not created_user_id:
        raise ValidationError("A user account must be created before approving the request")
    if legacy:
        updated = await backend.approve_access_request(request_id)
    else:
        updated = await backend.review_access_request(
            request_id, status=AccessRequestStatus.APPROVED.value, notes=notes
        )
    if updated.status is AccessRequestStatus.PENDING:
        updated.approve(reviewer_id=operator.user_id, notes=notes)
    return updated
