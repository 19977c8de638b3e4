from __future__ import annotations

from flask import Flask, request

from ..common.auth import current_role, current_user_id, roles_required
from ..common.datetime_utils import parse_iso_date
from ..common.http import json_body, ok
from ..container import Container
from ..core.enums import ATTENDEE_ROLES, REVIEWER_ROLES, CorrectionStatus
from ..core.exceptions import ValidationError
from .model import CorrectionRequest


def to_dict(req: CorrectionRequest) -> dict:
    return {
        "correction_id": req.correction_id,
        "user_id": req.user_id,
        "date": req.work_date.isoformat(),
        "reason": req.reason,
        "status": req.status.value,
        "created_at": req.created_at.isoformat(),
        "reviewed_by": req.reviewed_by,
        "reviewed_at": req.reviewed_at.isoformat() if req.reviewed_at else None,
        "review_note": req.review_note,
    }


def register(app: Flask, container: Container) -> None:
    service = container.correction_service

    @app.route("/api/attendance/correction", methods=["POST"], endpoint="correction_request")
    @roles_required(ATTENDEE_ROLES)
    def request_correction():
        data = json_body()
        if not data.get("date"):
            raise ValidationError("Date is required")
        req = service.request(
            user_id=current_user_id(),
            work_date=parse_iso_date(str(data["date"])),
            reason=data.get("reason") or "",
        )
        return ok(to_dict(req), status=201)

    @app.route("/api/attendance/corrections", methods=["GET"], endpoint="correction_list_mine")
    @roles_required(ATTENDEE_ROLES)
    def list_mine():
        return ok([to_dict(r) for r in service.list_mine(current_user_id())])

    @app.route("/api/admin/corrections", methods=["GET"], endpoint="correction_list")
    @roles_required(REVIEWER_ROLES)
    def list_all():
        raw = (request.args.get("status") or "PENDING").upper()
        if raw == "ALL":
            status = None
        else:
            try:
                status = CorrectionStatus(raw)
            except ValueError:
                raise ValidationError(f"Unknown status {raw!r}")
        return ok([to_dict(r) for r in service.list(status=status)])

    @app.route("/api/admin/corrections/<int:correction_id>/review", methods=["POST"], endpoint="correction_review")
    @roles_required(REVIEWER_ROLES)
    def review(correction_id: int):
        data = json_body()
        req = service.review(
            current_role=current_role(),
            reviewer_id=current_user_id(),
            correction_id=correction_id,
            decision=str(data.get("status") or data.get("decision") or "").upper(),
            note=data.get("note") or data.get("review_note") or "",
        )
        return ok(to_dict(req))
