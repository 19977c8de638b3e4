from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import CorrectionStatus


@dataclass(frozen=True)
class CorrectionRequest:
    """An employee's request to fix the attendance of one day."""

    correction_id: int
    user_id: int
    work_date: date
    reason: str
    status: CorrectionStatus
    created_at: datetime
    reviewed_by: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    review_note: Optional[str] = None
