from __future__ import annotations

from fastapi import APIRouter, Depends

from src.infrastructure.services.notification_service import NotificationService
from src.interfaces.http.deps import get_console_session, get_notification_service
from src.interfaces.http.schemas.notifications import NotificationListResponse, NotificationSchema
from src.interfaces.http.sessions import ConsoleSession

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=NotificationListResponse)
async def list_notifications(
    peek: bool = False,
    session: ConsoleSession = Depends(get_console_session),
    service: NotificationService = Depends(get_notification_service),
) -> NotificationListResponse:
    """Unread toasts for the session. They are marked read unless `peek` is set."""
    if peek:
        notifications = service.list_unread(session.id)
    else:
        notifications = service.drain(session.id)
    return NotificationListResponse(
        notifications=[NotificationSchema.model_validate(n) for n in notifications],
        total=len(notifications),
    )
