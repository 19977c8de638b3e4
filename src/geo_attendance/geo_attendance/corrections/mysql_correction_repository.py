from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from mysql.connector.errors import IntegrityError

from ..core.enums import CorrectionStatus
from ..core.exceptions import DuplicateCorrection, NotFoundError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key
from .model import CorrectionRequest
from .repository import CorrectionRepository

_COLUMNS = "correction_id, user_id, work_date, reason, status, created_at, reviewed_by, reviewed_at, review_note"


def _to_request(r) -> CorrectionRequest:
    return CorrectionRequest(
        correction_id=int(r["correction_id"]),
        user_id=int(r["user_id"]),
        work_date=r["work_date"],
        reason=r["reason"],
        status=CorrectionStatus(r["status"]),
        created_at=r["created_at"],
        reviewed_by=int(r["reviewed_by"]) if r.get("reviewed_by") is not None else None,
        reviewed_at=r.get("reviewed_at"),
        review_note=r.get("review_note"),
    )


class MySQLCorrectionRepository(CorrectionRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, *, user_id: int, work_date: date, reason: str, created_at: datetime) -> CorrectionRequest:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance_corrections(user_id, work_date, reason, status, created_at)
                    VALUES(%s,%s,%s,%s,%s)
                    """,
                    (int(user_id), work_date, reason, CorrectionStatus.PENDING.value, created_at),
                )
                correction_id = int(cur.lastrowid)
        except IntegrityError as e:
            if is_duplicate_key(e):
                raise DuplicateCorrection("A correction request already exists for this date") from e
            raise

        req = self.get_by_id(correction_id)
        if req is None:
            raise NotFoundError(f"Correction {correction_id} not found after insert")
        return req

    def get_by_id(self, correction_id: int) -> Optional[CorrectionRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance_corrections WHERE correction_id=%s", (int(correction_id),))
            r = fetchone(cur)
            return _to_request(r) if r else None

    def decide(
        self,
        correction_id: int,
        *,
        status: CorrectionStatus,
        reviewed_by: int,
        reviewed_at: datetime,
        review_note: Optional[str] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_corrections
                SET status=%s, reviewed_by=%s, reviewed_at=%s, review_note=%s
                WHERE correction_id=%s AND status=%s
                """,
                (
                    status.value,
                    int(reviewed_by),
                    reviewed_at,
                    review_note,
                    int(correction_id),
                    CorrectionStatus.PENDING.value,
                ),
            )
            return cur.rowcount > 0

    def list(
        self,
        *,
        status: Optional[CorrectionStatus] = None,
        user_id: Optional[int] = None,
        limit: int = 200,
    ) -> Sequence[CorrectionRequest]:
        clauses = ["1=1"]
        params: list[object] = []
        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)
        if user_id is not None:
            clauses.append("user_id=%s")
            params.append(int(user_id))
        params.append(int(limit))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_corrections
                WHERE {' AND '.join(clauses)}
                ORDER BY created_at DESC, correction_id DESC
                LIMIT %s
                """,
                tuple(params),
            )
            return [_to_request(r) for r in fetchall(cur)]
