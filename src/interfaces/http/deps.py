from __future__ import annotations

from fastapi import Request

from src.application.errors import AuthError
from src.application.workflow.coordinator import ApprovalWorkflowCoordinator
from src.config.settings import Settings, get_settings
from src.infrastructure.services.notification_service import NotificationService
from src.interfaces.http.sessions import ConsoleSession, SessionRegistry


def get_app_settings() -> Settings:
    return get_settings()


def get_session_registry(request: Request) -> SessionRegistry:
    registry = getattr(request.app.state, "sessions", None)
    if registry is None:
        raise RuntimeError("Session registry not configured")
    return registry


async def get_console_session(request: Request) -> ConsoleSession:
    session = getattr(request.state, "console_session", None)
    if session is None:
        raise AuthError("Console session required")
    return session


async def get_coordinator(request: Request) -> ApprovalWorkflowCoordinator:
    session = await get_console_session(request)
    return session.coordinator


def get_notification_service(request: Request) -> NotificationService:
    service = getattr(request.app.state, "notifications", None)
    if service is None:
        raise RuntimeError("Notification service not configured")
    return service
