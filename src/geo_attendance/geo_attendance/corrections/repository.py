from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import CorrectionStatus
from .model import CorrectionRequest


class CorrectionRepository(Protocol):
    def create(self, *, user_id: int, work_date: date, reason: str, created_at: datetime) -> CorrectionRequest:
        """DuplicateCorrection when any request already exists for (user, date)."""
        raise NotImplementedError

    def get_by_id(self, correction_id: int) -> Optional[CorrectionRequest]:
        raise NotImplementedError

    def decide(
        self,
        correction_id: int,
        *,
        status: CorrectionStatus,
        reviewed_by: int,
        reviewed_at: datetime,
        review_note: Optional[str] = None,
    ) -> bool:
        """Move a PENDING request to `status`; False if it is no longer pending."""
        raise NotImplementedError

    def list(
        self,
        *,
        status: Optional[CorrectionStatus] = None,
        user_id: Optional[int] = None,
        limit: int = 200,
    ) -> Sequence[CorrectionRequest]:
        raise NotImplementedError
