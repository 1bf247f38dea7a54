from __future__ import annotations

from dataclasses import dataclass

from src.domain.value_objects.company_type import CompanyType


@dataclass(slots=True, frozen=True)
class Company:
    id: str
    name: str
    type: CompanyType = CompanyType.SERVICE
