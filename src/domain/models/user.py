from __future__ import annotations

from dataclasses import dataclass, field

from src.domain.value_objects.role import Role


@dataclass(slots=True, frozen=True)
class User:
    id: str
    email: str
    first_name: str
    last_name: str
    username: str | None = None
    company_id: str | None = None
    roles: tuple[Role, ...] = field(default_factory=tuple)
