from __future__ import annotations

from typing import Any

from pydantic import BaseModel

from src.application.workflow.coordinator import ActionResult
from src.interfaces.http.schemas.notifications import NotificationSchema


class ActionResultResponse(BaseModel):
    ok: bool
    outcome: str
    request_id: str | None = None
    error_code: str | None = None
    details: dict[str, Any] = {}
    notification: NotificationSchema | None = None

    @classmethod
    def from_result(cls, result: ActionResult) -> ActionResultResponse:
        return cls(
            ok=result.ok,
            outcome=result.outcome,
            request_id=result.request_id,
            error_code=result.error_code,
            details=result.details,
            notification=(
                NotificationSchema.model_validate(result.notification)
                if result.notification is not None
                else None
            ),
        )
