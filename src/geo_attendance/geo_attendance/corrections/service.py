from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Callable, Optional, Sequence

from ..common.datetime_utils import utc_now
from ..common.validators import optional_text, require_non_empty
from ..core.enums import REVIEWER_ROLES, CorrectionStatus, Role
from ..core.exceptions import AlreadyReviewed, AuthorizationError, NotFoundError, ValidationError
from ..notifications.sink import AttendanceEvent, LoggingNotificationSink, NotificationSink, safe_emit
from .model import CorrectionRequest
from .repository import CorrectionRepository

logger = logging.getLogger(__name__)

DECISIONS = frozenset({CorrectionStatus.APPROVED, CorrectionStatus.REJECTED})


class CorrectionService:
    """PENDING -> APPROVED | REJECTED, both terminal.

    Approving does not touch attendance; the reviewer follows up with a manual
    entry when the record itself needs fixing.
    """

    def __init__(
        self,
        corrections: CorrectionRepository,
        *,
        notifier: NotificationSink | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._corrections = corrections
        self._notifier = notifier or LoggingNotificationSink()
        self._clock = clock

    def request(self, *, user_id: int, work_date: date, reason: str) -> CorrectionRequest:
        if work_date is None:
            raise ValidationError("Date is required")
        reason = require_non_empty(reason, "Reason")

        req = self._corrections.create(user_id=int(user_id), work_date=work_date, reason=reason, created_at=self._clock())
        logger.info("Correction %s requested by user=%s for %s", req.correction_id, user_id, work_date)
        return req

    def review(
        self,
        *,
        current_role: Role,
        reviewer_id: int,
        correction_id: int,
        decision: CorrectionStatus | str,
        note: str = "",
    ) -> CorrectionRequest:
        if current_role not in REVIEWER_ROLES:
            raise AuthorizationError("Only administrators can review corrections")
        try:
            decision = CorrectionStatus(decision)
        except ValueError:
            raise ValidationError("Decision must be APPROVED or REJECTED")
        if decision not in DECISIONS:
            raise ValidationError("Decision must be APPROVED or REJECTED")

        req = self._corrections.get_by_id(int(correction_id))
        if not req:
            raise NotFoundError("Correction request not found")
        if req.status != CorrectionStatus.PENDING:
            raise AlreadyReviewed("Correction request has already been reviewed")

        decided = self._corrections.decide(
            req.correction_id,
            status=decision,
            reviewed_by=int(reviewer_id),
            reviewed_at=self._clock(),
            review_note=optional_text(note),
        )
        if not decided:
            # Another reviewer won the conditional update.
            raise AlreadyReviewed("Correction request has already been reviewed")

        updated = self._corrections.get_by_id(req.correction_id) or req
        logger.info("Correction %s %s by reviewer=%s", req.correction_id, decision.value, reviewer_id)
        event = f"correction.{decision.value.lower()}"
        safe_emit(
            self._notifier,
            AttendanceEvent(
                name=event,
                user_id=req.user_id,
                occurred_at=self._clock(),
                payload={"correction_id": req.correction_id, "work_date": req.work_date.isoformat()},
            ),
        )
        return updated

    def list_mine(self, user_id: int) -> Sequence[CorrectionRequest]:
        return self._corrections.list(user_id=int(user_id))

    def list_pending(self) -> Sequence[CorrectionRequest]:
        return self._corrections.list(status=CorrectionStatus.PENDING)

    def list(self, *, status: Optional[CorrectionStatus] = None, user_id: Optional[int] = None) -> Sequence[CorrectionRequest]:
        return self._corrections.list(status=status, user_id=user_id)
