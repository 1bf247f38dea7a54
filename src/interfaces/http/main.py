from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import APIRouter, Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.application.interfaces.backend import FieldOpsBackend
from src.config.settings import Settings, get_settings
from src.infrastructure.api.client import HttpFieldOpsBackend
from src.infrastructure.services.notification_service import NotificationService
from src.interfaces.http.deps import get_app_settings
from src.interfaces.http.routers import access_requests as access_requests_router
from src.interfaces.http.routers import approval_requests as approval_requests_router
from src.interfaces.http.routers import approvals as approvals_router
from src.interfaces.http.routers import notifications as notifications_router
from src.interfaces.http.routers import provisioning as provisioning_router
from src.interfaces.http.routers import sessions as sessions_router
from src.interfaces.http.sessions import SessionRegistry
from src.interfaces.middleware.error_handler import register_error_handlers
from src.interfaces.middleware.session_middleware import SessionMiddleware

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.sessions.start_sweeper()
    try:
        yield
    finally:
        await app.state.sessions.close_all()
        backend = app.state.backend
        if app.state.owns_backend and hasattr(backend, "aclose"):
            await backend.aclose()


def _configure_logging(level_name: str) -> None:
    level = getattr(logging, level_name.upper(), logging.INFO)
    root = logging.getLogger()
    # Avoid adding duplicate handlers on reload
    if not any(isinstance(h, logging.StreamHandler) for h in root.handlers):
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            fmt="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        )
        handler.setFormatter(formatter)
        root.addHandler(handler)
    root.setLevel(level)
    # Align common libraries
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access", "httpx"):
        logging.getLogger(name).setLevel(level)


def create_app(
    *,
    settings: Settings | None = None,
    backend: FieldOpsBackend | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    _configure_logging(settings.log_level)
    app = FastAPI(
        title="FieldOps Approvals Console",
        version="0.1.0",
        description="Operator console for access and approval requests",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.owns_backend = backend is None
    if backend is None:
        token = settings.backend_api_token
        backend = HttpFieldOpsBackend(
            base_url=settings.backend_base_url,
            api_token=token.get_secret_value() if token is not None else None,
            timeout=settings.backend_timeout_seconds,
        )
    app.state.backend = backend
    app.state.notifications = NotificationService()
    app.state.sessions = SessionRegistry(
        settings=settings,
        backend=backend,
        notifications=app.state.notifications,
    )
    register_error_handlers(app)
    logger.info(
        "Console configured: backend=%s review_mode=%s env=%s",
        settings.backend_base_url,
        settings.access_review_mode,
        settings.environment,
    )

    # Group all API routes behind a single versioned prefix
    api = APIRouter(prefix="/api/v1")
    api.include_router(sessions_router.router)
    api.include_router(approvals_router.router)
    api.include_router(access_requests_router.router)
    api.include_router(provisioning_router.router)
    api.include_router(approval_requests_router.router)
    api.include_router(notifications_router.router)

    @api.get("/health", tags=["health"])
    async def health(_: Settings = Depends(get_app_settings)) -> dict[str, str]:  # noqa: ANN001
        return {"status": "ok"}

    app.include_router(api)

    # Add sessions first, then CORS last so CORS runs outermost and can handle preflight OPTIONS
    app.add_middleware(SessionMiddleware, settings=settings)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    return app


app = create_app()
