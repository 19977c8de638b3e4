from __future__ import annotations

from typing import Any, Optional

from flask import Flask, request

from ..common.auth import current_role, current_user_id, login_required, roles_required
from ..common.datetime_utils import parse_iso_date, parse_iso_datetime
from ..common.http import json_body, ok, ok_page
from ..common.paging import normalize_page, sort_params
from ..container import Container
from ..core.constants import DEFAULT_HISTORY_PAGE_SIZE
from ..core.enums import ATTENDEE_ROLES, REVIEWER_ROLES, AttendanceStatus
from ..core.exceptions import ValidationError
from ..geofence.evaluator import GeoPoint
from ..reports.service import to_row
from .model import SORTABLE_FIELDS, Location, Punch, PunchPatch
from .service import UNCHANGED


def _optional_date(value: Optional[str]):
    return parse_iso_date(value) if value else None


def _optional_bool(value: Any) -> Optional[bool]:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in {"1", "true", "yes"}:
        return True
    if text in {"0", "false", "no"}:
        return False
    raise ValidationError(f"Invalid boolean {value!r}")


def _status(value: Optional[str]) -> Optional[AttendanceStatus]:
    if not value:
        return None
    try:
        return AttendanceStatus(str(value).upper())
    except ValueError:
        raise ValidationError(f"Unknown status {value!r}")


def _punch(data: Optional[dict]) -> Optional[Punch]:
    """Punch from admin JSON: {time, latitude?, longitude?, address?, is_within_office?}."""
    if not data:
        return None
    if not data.get("time"):
        raise ValidationError("Punch time is required")
    location = None
    if data.get("latitude") is not None or data.get("longitude") is not None:
        point = GeoPoint.parse(data.get("latitude"), data.get("longitude"))
        location = Location(latitude=point.latitude, longitude=point.longitude, address=data.get("address"))
    return Punch(
        time=parse_iso_datetime(str(data["time"])),
        location=location,
        is_within_office=bool(_optional_bool(data.get("is_within_office"))),
        device_info=data.get("device_info"),
    )


def _punch_patch(data: Optional[dict]) -> Optional[PunchPatch]:
    """Partial punch for an admin edit; absent keys keep the stored value."""
    if not data:
        return None
    location = None
    if data.get("latitude") is not None or data.get("longitude") is not None:
        point = GeoPoint.parse(data.get("latitude"), data.get("longitude"))
        location = Location(latitude=point.latitude, longitude=point.longitude, address=data.get("address"))
    return PunchPatch(
        time=parse_iso_datetime(str(data["time"])) if data.get("time") else None,
        location=location,
        is_within_office=_optional_bool(data.get("is_within_office")),
        device_info=data.get("device_info"),
    )


def _location_args(data: dict) -> dict:
    location = data.get("location") if isinstance(data.get("location"), dict) else data
    return {
        "latitude": location.get("latitude"),
        "longitude": location.get("longitude"),
        "address": location.get("address"),
    }


def register(app: Flask, container: Container) -> None:
    service = container.attendance_service
    reports = container.report_service

    @app.route("/api/attendance/check-in", methods=["POST"], endpoint="attendance_check_in")
    @roles_required(ATTENDEE_ROLES)
    def check_in():
        data = json_body()
        record = service.check_in(
            current_user_id(),
            **_location_args(data),
            device_info=data.get("device_info") or request.headers.get("User-Agent"),
        )
        return ok(to_row(record), status=201)

    @app.route("/api/attendance/check-out", methods=["POST"], endpoint="attendance_check_out")
    @roles_required(ATTENDEE_ROLES)
    def check_out():
        record = service.check_out(current_user_id(), **_location_args(json_body()))
        return ok(to_row(record))

    @app.route("/api/attendance/breaks", methods=["POST"], endpoint="attendance_add_break")
    @roles_required(ATTENDEE_ROLES)
    def add_break():
        data = json_body()
        if not data.get("start_time") or not data.get("end_time"):
            raise ValidationError("start_time and end_time are required")
        record = service.add_break(
            current_user_id(),
            start_time=parse_iso_datetime(str(data["start_time"])),
            end_time=parse_iso_datetime(str(data["end_time"])),
            reason=data.get("reason"),
        )
        return ok(to_row(record))

    @app.route("/api/attendance/today", methods=["GET"], endpoint="attendance_today")
    @login_required
    def today():
        record = service.today(current_user_id())
        return ok(to_row(record) if record else None)

    @app.route("/api/attendance/my-history", methods=["GET"], endpoint="attendance_my_history")
    @roles_required(ATTENDEE_ROLES)
    def my_history():
        page, per_page = normalize_page(
            request.args.get("page"),
            request.args.get("limit") or request.args.get("per_page"),
            default_size=DEFAULT_HISTORY_PAGE_SIZE,
        )
        result = reports.history(
            current_user_id(),
            start=_optional_date(request.args.get("start_date")),
            end=_optional_date(request.args.get("end_date")),
            page=page,
            per_page=per_page,
            today=service.local_date(current_user_id()),
        )
        return ok_page(result)

    @app.route("/api/admin/attendance", methods=["GET"], endpoint="admin_attendance_list")
    @roles_required(REVIEWER_ROLES)
    def admin_list():
        page, per_page = normalize_page(request.args.get("page"), request.args.get("limit") or request.args.get("per_page"))
        user_id = request.args.get("user_id")
        result = reports.search(
            start=_optional_date(request.args.get("start_date")),
            end=_optional_date(request.args.get("end_date")),
            status=_status(request.args.get("status")),
            user_id=int(user_id) if user_id else None,
            text=request.args.get("search"),
            page=page,
            per_page=per_page,
            sort=sort_params(request.args.get("sort"), SORTABLE_FIELDS),
        )
        return ok_page(result)

    @app.route("/api/admin/attendance/summary", methods=["GET"], endpoint="admin_attendance_summary")
    @roles_required(REVIEWER_ROLES)
    def admin_summary():
        user_id = request.args.get("user_id")
        summary = reports.summary(
            start=_optional_date(request.args.get("start_date")),
            end=_optional_date(request.args.get("end_date")),
            user_id=int(user_id) if user_id else None,
        )
        return ok(summary)

    @app.route("/api/admin/attendance/geo-logs", methods=["GET"], endpoint="admin_attendance_geo_logs")
    @roles_required(REVIEWER_ROLES)
    def admin_geo_logs():
        page, per_page = normalize_page(request.args.get("page"), request.args.get("limit") or request.args.get("per_page"))
        result = reports.geo_logs(
            start=_optional_date(request.args.get("start_date")),
            end=_optional_date(request.args.get("end_date")),
            within_office=_optional_bool(request.args.get("within_office")),
            text=request.args.get("search"),
            page=page,
            per_page=per_page,
        )
        return ok_page(result)

    @app.route("/api/admin/attendance/manual", methods=["POST"], endpoint="admin_attendance_manual")
    @roles_required(REVIEWER_ROLES)
    def admin_manual():
        data = json_body()
        if not data.get("user_id") or not data.get("date"):
            raise ValidationError("user_id and date are required")
        record = service.manual_entry(
            current_role=current_role(),
            admin_user_id=current_user_id(),
            user_id=int(data["user_id"]),
            work_date=parse_iso_date(str(data["date"])),
            check_in=_punch(data.get("check_in")),
            check_out=_punch(data.get("check_out")),
            status=_status(data.get("status")) or AttendanceStatus.PRESENT,
            reason=data.get("reason"),
            notes=data.get("notes"),
        )
        return ok(to_row(record), status=201)

    @app.route("/api/admin/attendance/<int:attendance_id>", methods=["DELETE"], endpoint="admin_attendance_delete")
    @roles_required(REVIEWER_ROLES)
    def admin_delete(attendance_id: int):
        service.delete_record(current_role=current_role(), attendance_id=attendance_id)
        return ok({"attendance_id": attendance_id, "deleted": True})

    @app.route("/api/admin/attendance/<int:attendance_id>", methods=["PUT"], endpoint="admin_attendance_update")
    @roles_required(REVIEWER_ROLES)
    def admin_update(attendance_id: int):
        data = json_body()
        record = service.update_record(
            current_role=current_role(),
            admin_user_id=current_user_id(),
            attendance_id=attendance_id,
            check_in=_punch_patch(data.get("check_in")),
            check_out=_punch_patch(data.get("check_out")),
            status=_status(data.get("status")),
            notes=data["notes"] if "notes" in data else UNCHANGED,
            reason=data.get("reason"),
        )
        return ok(to_row(record))

    @app.route("/api/admin/attendance/geo-logs/stats", methods=["GET"], endpoint="admin_attendance_geo_stats")
    @roles_required(REVIEWER_ROLES)
    def admin_geo_stats():
        stats = reports.geo_stats(
            start=_optional_date(request.args.get("start_date")),
            end=_optional_date(request.args.get("end_date")),
            today=service.local_date(current_user_id()),
        )
        return ok(stats)

    @app.route(
        "/api/admin/attendance/geo-logs/outside-office", methods=["GET"], endpoint="admin_attendance_outside_office"
    )
    @roles_required(REVIEWER_ROLES)
    def admin_outside_office():
        page, per_page = normalize_page(request.args.get("page"), request.args.get("limit") or request.args.get("per_page"))
        result = reports.outside_office(
            day=_optional_date(request.args.get("date")) or service.local_date(current_user_id()),
            page=page,
            per_page=per_page,
        )
        return ok_page(result)

    @app.route(
        "/api/admin/attendance/geo-logs/verify-location", methods=["POST"], endpoint="admin_attendance_verify_location"
    )
    @roles_required(REVIEWER_ROLES)
    def admin_verify_location():
        data = json_body()
        check = service.verify_location(
            int(data["user_id"]) if data.get("user_id") else current_user_id(),
            latitude=data.get("latitude"),
            longitude=data.get("longitude"),
        )
        return ok(
            {
                "is_within_office": check.within_office,
                "distance_km": round(check.distance_km, 4),
                "radius_km": check.radius_km,
                "office": {
                    "latitude": check.office.latitude,
                    "longitude": check.office.longitude,
                    "address": check.office.address,
                },
            }
        )
