from __future__ import annotations

from datetime import date, datetime

import pytest

from geo_attendance.corrections.memory_correction_repository import InMemoryCorrectionRepository
from geo_attendance.corrections.service import CorrectionService
from geo_attendance.core.enums import CorrectionStatus, Role
from geo_attendance.core.exceptions import (
    AlreadyReviewed,
    AuthorizationError,
    DuplicateCorrection,
    NotFoundError,
    ValidationError,
)
from geo_attendance.notifications.sink import RecordingNotificationSink

from conftest import FixedClock

EMPLOYEE = 3
ADMIN = 1
DAY = date(2026, 3, 2)


def test_request_is_pending(container, clock):
    req = container.correction_service.request(user_id=EMPLOYEE, work_date=DAY, reason="  Forgot to check out ")

    assert req.status == CorrectionStatus.PENDING
    assert req.reason == "Forgot to check out"
    assert req.created_at == clock.now
    assert req.reviewed_by is None


@pytest.mark.parametrize("reason", ["", "   ", None])
def test_request_needs_reason(container, reason):
    with pytest.raises(ValidationError):
        container.correction_service.request(user_id=EMPLOYEE, work_date=DAY, reason=reason)


def test_one_request_per_user_and_day(container):
    service = container.correction_service
    service.request(user_id=EMPLOYEE, work_date=DAY, reason="GPS was off")

    with pytest.raises(DuplicateCorrection):
        service.request(user_id=EMPLOYEE, work_date=DAY, reason="again")

    # other users and other days are unaffected
    service.request(user_id=4, work_date=DAY, reason="GPS was off")
    service.request(user_id=EMPLOYEE, work_date=date(2026, 3, 3), reason="GPS was off")


def test_rejected_request_cannot_be_filed_again(container):
    service = container.correction_service
    req = service.request(user_id=EMPLOYEE, work_date=DAY, reason="GPS was off")
    service.review(current_role=Role.HR, reviewer_id=2, correction_id=req.correction_id, decision="REJECTED")

    with pytest.raises(DuplicateCorrection):
        service.request(user_id=EMPLOYEE, work_date=DAY, reason="please")


def test_approve_records_reviewer(container, clock, sink):
    service = container.correction_service
    req = service.request(user_id=EMPLOYEE, work_date=DAY, reason="GPS was off")
    clock.now = datetime(2026, 3, 3, 10, 0)

    decided = service.review(
        current_role=Role.ADMIN,
        reviewer_id=ADMIN,
        correction_id=req.correction_id,
        decision=CorrectionStatus.APPROVED,
        note="ok",
    )

    assert decided.status == CorrectionStatus.APPROVED
    assert decided.reviewed_by == ADMIN
    assert decided.reviewed_at == clock.now
    assert decided.review_note == "ok"
    assert [e.name for e in sink.events] == ["correction.approved"]
    assert sink.events[0].user_id == EMPLOYEE
    assert sink.events[0].payload == {"correction_id": req.correction_id, "work_date": "2026-03-02"}


def test_second_review_is_rejected(container):
    service = container.correction_service
    req = service.request(user_id=EMPLOYEE, work_date=DAY, reason="GPS was off")
    service.review(current_role=Role.ADMIN, reviewer_id=ADMIN, correction_id=req.correction_id, decision="APPROVED")

    with pytest.raises(AlreadyReviewed):
        service.review(current_role=Role.HR, reviewer_id=2, correction_id=req.correction_id, decision="REJECTED")
    assert container.corrections_repo.get_by_id(req.correction_id).status == CorrectionStatus.APPROVED



class RivalFirstRepository(InMemoryCorrectionRepository):
    """Lets another reviewer decide between our read and our conditional write."""

    def decide(self, correction_id, **kwargs):
        super().decide(correction_id, status=CorrectionStatus.REJECTED, reviewed_by=2, reviewed_at=kwargs["reviewed_at"])
        return super().decide(correction_id, **kwargs)


def test_losing_a_concurrent_review_emits_nothing():
    sink = RecordingNotificationSink()
    repo = RivalFirstRepository()
    service = CorrectionService(repo, notifier=sink, clock=FixedClock(datetime(2026, 3, 3, 10, 0)))
    req = service.request(user_id=EMPLOYEE, work_date=DAY, reason="GPS was off")

    with pytest.raises(AlreadyReviewed):
        service.review(current_role=Role.ADMIN, reviewer_id=ADMIN, correction_id=req.correction_id, decision="APPROVED")

    stored = repo.get_by_id(req.correction_id)
    assert stored.status == CorrectionStatus.REJECTED
    assert stored.reviewed_by == 2
    assert sink.events == []


def test_review_requires_reviewer_role(container):
    service = container.correction_service
    req = service.request(user_id=EMPLOYEE, work_date=DAY, reason="GPS was off")

    with pytest.raises(AuthorizationError):
        service.review(current_role=Role.EMPLOYEE, reviewer_id=EMPLOYEE, correction_id=req.correction_id, decision="APPROVED")


@pytest.mark.parametrize("decision", ["PENDING", "MAYBE", ""])
def test_review_decision_must_be_terminal(container, decision):
    service = container.correction_service
    req = service.request(user_id=EMPLOYEE, work_date=DAY, reason="GPS was off")

    with pytest.raises(ValidationError):
        service.review(current_role=Role.ADMIN, reviewer_id=ADMIN, correction_id=req.correction_id, decision=decision)


def test_review_unknown_request(container):
    with pytest.raises(NotFoundError):
        container.correction_service.review(current_role=Role.ADMIN, reviewer_id=ADMIN, correction_id=99, decision="APPROVED")


def test_listing(container, clock):
    service = container.correction_service
    first = service.request(user_id=EMPLOYEE, work_date=DAY, reason="a")
    clock.now = datetime(2026, 3, 2, 10, 0)
    second = service.request(user_id=EMPLOYEE, work_date=date(2026, 3, 3), reason="b")
    service.request(user_id=4, work_date=DAY, reason="c")
    service.review(current_role=Role.ADMIN, reviewer_id=ADMIN, correction_id=first.correction_id, decision="REJECTED")

    assert [r.correction_id for r in service.list_mine(EMPLOYEE)] == [second.correction_id, first.correction_id]
    assert {r.user_id for r in service.list_pending()} == {EMPLOYEE, 4}
    assert len(service.list_pending()) == 2
    assert [r.correction_id for r in service.list(status=CorrectionStatus.REJECTED)] == [first.correction_id]
