from __future__ import annotations

from typing import Iterable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse, Response

from src.application.errors import AuthError
from src.config.settings import Settings

PUBLIC_PATHS: Iterable[str] = (
    "/api/v1/health",
    "/docs",
    "/openapi.json",
    "/redoc",
)


class SessionMiddleware(BaseHTTPMiddleware):
    """Resolves the console session header into `request.state.console_session`."""

    def __init__(self, app, *, settings: Settings) -> None:
        super().__init__(app)
        self.settings = settings

    async def dispatch(self, request: Request, call_next) -> Response:
        # Let CORS preflight pass without session checks
        if request.method == "OPTIONS":
            return await call_next(request)
        path = request.url.path
        if any(path.startswith(public) for public in PUBLIC_PATHS):
            return await call_next(request)
        # Opening a session is the only call made without one
        if request.method == "POST" and path.rstrip("/") == "/api/v1/sessions":
            return await call_next(request)

        try:
            session_id = request.headers.get(self.settings.session_header)
            if not session_id:
                raise AuthError(f"Missing {self.settings.session_header} header")
            registry = getattr(request.app.state, "sessions", None)
            if registry is None:
                raise RuntimeError("Session registry not configured")
            request.state.console_session = registry.get(session_id)
        except AuthError as exc:
            payload = {"code": exc.code, "message": exc.message}
            if exc.details is not None:
                payload["details"] = exc.details
            return JSONResponse(status_code=exc.status_code, content=payload)
        return await call_next(request)
