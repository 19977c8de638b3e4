from __future__ import annotations

import threading
from typing import Dict, Optional

from .model import Company
from .repository import CompanyRepository


class InMemoryCompanyRepository(CompanyRepository):
    def __init__(self):
        self._lock = threading.Lock()
        self._companies: Dict[int, Company] = {}
        self._user_company: Dict[int, int] = {}

    def add(self, company: Company) -> Company:
        with self._lock:
            self._companies[company.company_id] = company
        return company

    def assign_user(self, user_id: int, company_id: int) -> None:
        with self._lock:
            self._user_company[int(user_id)] = int(company_id)

    def get_by_id(self, company_id: int) -> Optional[Company]:
        with self._lock:
            return self._companies.get(int(company_id))

    def get_for_user(self, user_id: int) -> Optional[Company]:
        with self._lock:
            company_id = self._user_company.get(int(user_id))
            return self._companies.get(company_id) if company_id is not None else None
