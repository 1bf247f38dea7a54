from __future__ import annotations

from src.application.interfaces.backend import FieldOpsBackend
from src.application.operator_context import OperatorContext
from src.domain.models.access_request import AccessRequest
from src.domain.value_objects.request_status import AccessRequestStatus


async def execute(
    backend: FieldOpsBackend,
    operator: OperatorContext,
    request: AccessRequest,
    *,
    legacy: bool = False,
    notes: str | None = None,
) -> AccessRequest:
    operator.require_access_reviewer()
    request.ensure_pending()
    if legacy:
        updated = await backend.reject_access_request(request.id)
    else:
        updated = await backend.review_access_request(
            request.id, status=AccessRequestStatus.REJECTED.value, notes=notes
        )
    if updated.status is AccessRequestStatus.PENDING:
        # Backend acknowledged without transitioning; mirror the decision locally
        updated.reject(reviewer_id=operator.user_id, notes=notes)
    return updated
