from __future__ import annotations

import threading
from dataclasses import replace
from datetime import date, datetime
from typing import Dict, Optional, Sequence, Tuple

from ..core.enums import CorrectionStatus
from ..core.exceptions import DuplicateCorrection
from .model import CorrectionRequest
from .repository import CorrectionRepository


class InMemoryCorrectionRepository(CorrectionRepository):
    def __init__(self):
        self._lock = threading.Lock()
        self._next_id = 1
        self._rows: Dict[int, CorrectionRequest] = {}
        self._by_user_date: Dict[Tuple[int, date], int] = {}

    def create(self, *, user_id: int, work_date: date, reason: str, created_at: datetime) -> CorrectionRequest:
        key = (int(user_id), work_date)
        with self._lock:
            if key in self._by_user_date:
                raise DuplicateCorrection("A correction request already exists for this date")
            req = CorrectionRequest(
                correction_id=self._next_id,
                user_id=int(user_id),
                work_date=work_date,
                reason=reason,
                status=CorrectionStatus.PENDING,
                created_at=created_at,
            )
            self._next_id += 1
            self._rows[req.correction_id] = req
            self._by_user_date[key] = req.correction_id
            return req

    def get_by_id(self, correction_id: int) -> Optional[CorrectionRequest]:
        with self._lock:
            return self._rows.get(int(correction_id))

    def decide(
        self,
        correction_id: int,
        *,
        status: CorrectionStatus,
        reviewed_by: int,
        reviewed_at: datetime,
        review_note: Optional[str] = None,
    ) -> bool:
        with self._lock:
            req = self._rows.get(int(correction_id))
            if not req or req.status != CorrectionStatus.PENDING:
                return False
            self._rows[req.correction_id] = replace(
                req,
                status=status,
                reviewed_by=int(reviewed_by),
                reviewed_at=reviewed_at,
                review_note=review_note,
            )
            return True

    def list(
        self,
        *,
        status: Optional[CorrectionStatus] = None,
        user_id: Optional[int] = None,
        limit: int = 200,
    ) -> Sequence[CorrectionRequest]:
        with self._lock:
            rows = [
                r
                for r in self._rows.values()
                if (status is None or r.status == status) and (user_id is None or r.user_id == int(user_id))
            ]
        rows.sort(key=lambda r: (r.created_at, r.correction_id), reverse=True)
        return rows[: int(limit)]
