from __future__ import annotations

from enum import Enum


class CompanyType(str, Enum):
    SERVICE = "service"
    CLIENT = "client"
