from __future__ import annotations

from functools import lru_cache

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Upstream FieldOps REST backend
    backend_base_url: str = "http://localhost:5000"
    backend_api_token: SecretStr | None = None
    backend_timeout_seconds: float = 15.0
    # review | legacy (PATCH /review vs POST /approve + /reject)
    access_review_mode: str = "review"
    # Query cache
    poll_interval_seconds: float = 30.0
    stale_time_seconds: float = 8.0
    # Console sessions
    session_header: str = "X-Console-Session"
    # Idle sessions are refused and closed after this long; 0 keeps them open
    session_idle_timeout_seconds: float = 1800.0
    log_level: str = "INFO"
    environment: str = "dev"
    # CORS
    cors_allow_origins: str = "*"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    @field_validator("backend_base_url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("access_review_mode")
    @classmethod
    def validate_review_mode(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in {"review", "legacy"}:
            raise ValueError("access_review_mode must be 'review' or 'legacy'")
        return normalized

    @property
    def cors_allow_origins_list(self) -> list[str]:
        """Convert cors_allow_origins string to list"""
        if isinstance(self.cors_allow_origins, str):
            return [v.strip() for v in self.cors_allow_origins.split(",") if v.strip()]
        return self.cors_allow_origins

    @property
    def uses_legacy_review(self) -> bool:
        return self.access_review_mode == "legacy"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
