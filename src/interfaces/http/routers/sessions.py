from __future__ import annotations

from fastapi import APIRouter, Depends, status

from src.application.operator_context import OperatorContext
from src.interfaces.http.deps import get_console_session, get_session_registry
from src.interfaces.http.schemas.sessions import SessionCreateRequest, SessionResponse
from src.interfaces.http.sessions import ConsoleSession, SessionRegistry

router = APIRouter(prefix="/sessions", tags=["sessions"])


def _to_response(session: ConsoleSession) -> SessionResponse:
    return SessionResponse(
        session_id=session.id,
        user_id=session.operator.user_id,
        role=session.operator.role,
        company_type=session.operator.company_type,
        display_name=session.operator.display_name,
        created_at=session.created_at,
    )


@router.post("", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
async def open_session(
    payload: SessionCreateRequest,
    registry: SessionRegistry = Depends(get_session_registry),
) -> SessionResponse:
    operator = OperatorContext(
        user_id=payload.user_id,
        role=payload.role,
        company_type=payload.company_type,
        display_name=payload.display_name,
    )
    return _to_response(registry.open(operator))


@router.get("/current", response_model=SessionResponse)
async def current_session(
    session: ConsoleSession = Depends(get_console_session),
) -> SessionResponse:
    return _to_response(session)


@router.delete("/current", status_code=status.HTTP_204_NO_CONTENT)
async def close_session(
    session: ConsoleSession = Depends(get_console_session),
    registry: SessionRegistry = Depends(get_session_registry),
) -> None:
    await registry.close(session.id)
