from __future__ import annotations

from typing import Optional, Protocol

from .model import Company


class CompanyRepository(Protocol):
    """Read-only view of tenant configuration (office, rules, holidays)."""

    def get_by_id(self, company_id: int) -> Optional[Company]:
        raise NotImplementedError

    def get_for_user(self, user_id: int) -> Optional[Company]:
        raise NotImplementedError
