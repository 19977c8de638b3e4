from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Domain entity: an account that can log in.

    Plain data only; no database access lives here.
    """

    user_id: int
    full_name: str
    username: str
    password_hash: str
    role: Role
    company_id: Optional[int]
    is_active: bool = True
