from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from src.domain.value_objects.company_type import CompanyType
from src.domain.value_objects.role import Role


class SessionCreateRequest(BaseModel):
    user_id: str = Field(min_length=1)
    role: Role
    company_type: CompanyType = CompanyType.SERVICE
    display_name: str | None = None


class SessionResponse(BaseModel):
    session_id: str
    user_id: str
    role: Role
    company_type: CompanyType
    display_name: str | None = None
    created_at: datetime
