from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Any, Callable, Optional

from ..common.datetime_utils import js_weekday, local_work_date, to_local, to_utc, utc_now, whole_minutes
from ..common.validators import optional_text
from ..companies.model import AttendanceSettings, Company, OfficeLocation
from ..companies.repository import CompanyRepository
from ..core.constants import DEFAULT_MANUAL_ENTRY_REASON, DEFAULT_TIMEZONE, DEFAULT_UPDATE_REASON
from ..core.enums import REVIEWER_ROLES, AttendanceStatus, Role
from ..core.exceptions import (
    AlreadyCheckedIn,
    AlreadyCheckedOut,
    AuthorizationError,
    DuplicateAttendance,
    GeofenceNotConfigured,
    InvalidTransition,
    NoCheckInFound,
    NotFoundError,
    StaleRecordError,
    ValidationError,
)
from ..geofence.evaluator import GeofenceEvaluator, GeoPoint
from ..notifications.sink import AttendanceEvent, LoggingNotificationSink, NotificationSink, safe_emit
from .calculator.base import WorkHourCalculator
from .calculator.standard_calculator import StandardWorkHourCalculator
from .factory import AttendanceStrategyFactory
from .model import AttendanceRecord, BreakInterval, Location, NewAttendance, Punch, PunchPatch
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)

# Marks an optional field the caller did not send.
UNCHANGED: Any = object()


def _join_notes(*parts: Optional[str]) -> Optional[str]:
    kept = [p for p in parts if p]
    return "; ".join(dict.fromkeys(kept)) or None


def _utc_punch(punch: Optional[Punch]) -> Optional[Punch]:
    return replace(punch, time=to_utc(punch.time)) if punch is not None else None


def _check_punch_order(check_in: Optional[Punch], check_out: Optional[Punch]) -> None:
    if check_in is not None and check_out is not None and check_out.time <= check_in.time:
        raise ValidationError("Check-out time must be after check-in time")


def _merge_punch(current: Optional[Punch], patch: Optional[PunchPatch]) -> Optional[Punch]:
    if patch is None:
        return current
    if current is None and patch.time is None:
        raise ValidationError("Punch time is required")
    base = current or Punch(time=patch.time)
    return replace(
        base,
        time=to_utc(patch.time) if patch.time is not None else base.time,
        location=patch.location if patch.location is not None else base.location,
        is_within_office=patch.is_within_office if patch.is_within_office is not None else base.is_within_office,
        device_info=patch.device_info if patch.device_info is not None else base.device_info,
    )


@dataclass(frozen=True)
class LocationCheck:
    """Outcome of a geofence check that records nothing."""

    within_office: bool
    distance_km: float
    radius_km: float
    office: OfficeLocation


class AttendanceService:
    """Check-in / check-out state machine for one (user, day) record.

    NO_RECORD -> CHECKED_IN -> CHECKED_OUT. Every transition is a single
    conditional write (create-if-absent or versioned update), so two racing
    requests for the same user and day can never both succeed.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        companies: CompanyRepository,
        *,
        geofence: GeofenceEvaluator | None = None,
        calculator: WorkHourCalculator | None = None,
        strategy_factory: AttendanceStrategyFactory | None = None,
        notifier: NotificationSink | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._attendance = attendance
        self._companies = companies
        self._geofence = geofence or GeofenceEvaluator()
        self._calculator = calculator or StandardWorkHourCalculator()
        self._factory = strategy_factory or AttendanceStrategyFactory()
        self._notifier = notifier or LoggingNotificationSink()
        self._clock = clock

    # ---- helpers ----

    @staticmethod
    def _settings(company: Optional[Company]) -> AttendanceSettings:
        return company.settings if company else AttendanceSettings()

    @staticmethod
    def _timezone(company: Optional[Company]) -> str:
        return company.timezone if company else DEFAULT_TIMEZONE

    def _within_office(self, user_id: int, point: GeoPoint, company: Optional[Company]) -> bool:
        try:
            result = self._geofence.evaluate(point, company.office if company else None)
        except GeofenceNotConfigured:
            logger.warning("No office location configured for user %s; treating punch as outside the office", user_id)
            return False
        logger.debug("user=%s distance_km=%.4f within=%s", user_id, result.distance_km, result.within_office)
        return result.within_office

    def _notify(self, name: str, user_id: int, **payload: Any) -> None:
        safe_emit(self._notifier, AttendanceEvent(name=name, user_id=int(user_id), occurred_at=self._clock(), payload=payload))

    def _hours_for(
        self, user_id: int, check_in: Optional[Punch], check_out: Optional[Punch], breaks
    ) -> tuple[int, int]:
        if check_in is None or check_out is None:
            return 0, 0
        company = self._companies.get_for_user(user_id)
        hours = self._calculator.compute(
            check_in.time,
            check_out.time,
            breaks,
            standard_day_minutes=self._settings(company).standard_day_minutes,
        )
        return hours.work_minutes, hours.overtime_minutes

    # ---- use cases ----

    def check_in(
        self,
        user_id: int,
        *,
        latitude: Any,
        longitude: Any,
        address: Optional[str] = None,
        device_info: Optional[str] = None,
        now: datetime | None = None,
    ) -> AttendanceRecord:
        point = GeoPoint.parse(latitude, longitude)
        company = self._companies.get_for_user(user_id)
        settings = self._settings(company)
        tz = self._timezone(company)

        now = to_utc(now or self._clock())
        work_date = local_work_date(now, tz)
        within = self._within_office(user_id, point, company)

        strategy = self._factory.for_checkin(settings=settings)
        decision = strategy.decide_checkin(
            local_now=to_local(now, tz),
            work_date=work_date,
            settings=settings,
            within_office=within,
        )

        punch = Punch(
            time=now,
            location=Location(latitude=point.latitude, longitude=point.longitude, address=optional_text(address)),
            is_within_office=within,
            device_info=optional_text(device_info),
        )
        try:
            record = self._attendance.create_if_absent(
                NewAttendance(
                    user_id=int(user_id),
                    work_date=work_date,
                    status=decision.status,
                    check_in=punch,
                    notes=decision.note,
                )
            )
        except DuplicateAttendance as e:
            raise AlreadyCheckedIn("Already checked in today") from e

        logger.info("Check-in user=%s date=%s status=%s", user_id, work_date, record.status.value)
        self._notify("attendance.checked_in", user_id, work_date=work_date.isoformat(), status=record.status.value)
        return record

    def check_out(
        self,
        user_id: int,
        *,
        latitude: Any = None,
        longitude: Any = None,
        address: Optional[str] = None,
        now: datetime | None = None,
    ) -> AttendanceRecord:
        company = self._companies.get_for_user(user_id)
        settings = self._settings(company)
        now = to_utc(now or self._clock())
        work_date = local_work_date(now, self._timezone(company))

        record = self._attendance.get_for_user_and_date(user_id, work_date)
        if not record or not record.is_checked_in:
            raise NoCheckInFound("No check-in found for today")
        if record.is_checked_out:
            raise AlreadyCheckedOut("Already checked out today")

        location = None
        within = False
        if latitude is not None or longitude is not None:
            point = GeoPoint.parse(latitude, longitude)
            location = Location(latitude=point.latitude, longitude=point.longitude, address=optional_text(address))
            within = self._within_office(user_id, point, company)

        if now <= record.check_in.time:
            raise InvalidTransition("Check-out time must be after check-in time")

        hours = self._calculator.compute(
            record.check_in.time,
            now,
            record.breaks,
            standard_day_minutes=settings.standard_day_minutes,
        )
        strategy = self._factory.for_checkout(settings=settings, current_status=record.status, work_minutes=hours.work_minutes)
        decision = strategy.decide_checkout(current=record.status, work_minutes=hours.work_minutes, settings=settings)

        changes = {
            "check_out": Punch(time=now, location=location, is_within_office=within),
            "work_minutes": hours.work_minutes,
            "overtime_minutes": hours.overtime_minutes,
            "status": decision.status,
            "notes": _join_notes(record.notes, decision.note),
        }
        try:
            updated = self._attendance.update(record.attendance_id, expected_version=record.version, changes=changes)
        except StaleRecordError as e:
            latest = self._attendance.get_by_id(record.attendance_id)
            if latest is not None and latest.is_checked_out:
                raise AlreadyCheckedOut("Already checked out today") from e
            raise

        logger.info(
            "Check-out user=%s date=%s work_minutes=%s overtime=%s",
            user_id,
            work_date,
            updated.work_minutes,
            updated.overtime_minutes,
        )
        self._notify(
            "attendance.checked_out",
            user_id,
            work_date=work_date.isoformat(),
            work_minutes=updated.work_minutes,
            overtime_minutes=updated.overtime_minutes,
        )
        return updated

    def add_break(
        self,
        user_id: int,
        *,
        start_time: datetime,
        end_time: datetime,
        reason: Optional[str] = None,
        now: datetime | None = None,
    ) -> AttendanceRecord:
        company = self._companies.get_for_user(user_id)
        now = to_utc(now or self._clock())
        work_date = local_work_date(now, self._timezone(company))

        record = self._attendance.get_for_user_and_date(user_id, work_date)
        if not record or not record.is_checked_in:
            raise NoCheckInFound("No check-in found for today")
        start_time, end_time = to_utc(start_time), to_utc(end_time)
        if end_time <= start_time:
            raise ValidationError("Break end time must be after start time")

        interval = BreakInterval(
            start_time=start_time,
            end_time=end_time,
            duration_minutes=whole_minutes(start_time, end_time),
            reason=optional_text(reason),
        )
        changes: dict[str, Any] = {"breaks": record.breaks + (interval,)}
        if record.is_checked_out:
            hours = self._calculator.compute(
                record.check_in.time,
                record.check_out.time,
                changes["breaks"],
                standard_day_minutes=self._settings(company).standard_day_minutes,
            )
            changes["work_minutes"] = hours.work_minutes
            changes["overtime_minutes"] = hours.overtime_minutes

        return self._attendance.update(record.attendance_id, expected_version=record.version, changes=changes)

    def manual_entry(
        self,
        *,
        current_role: Role,
        admin_user_id: int,
        user_id: int,
        work_date: date,
        check_in: Optional[Punch] = None,
        check_out: Optional[Punch] = None,
        status: AttendanceStatus = AttendanceStatus.PRESENT,
        reason: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> AttendanceRecord:
        """Create or overwrite a record on an administrator's authority.

        Location flags on the punches are stored as given; no geofence check runs.
        """
        if current_role not in REVIEWER_ROLES:
            raise AuthorizationError("Only administrators can enter attendance manually")
        status = AttendanceStatus(status)
        check_in, check_out = _utc_punch(check_in), _utc_punch(check_out)
        _check_punch_order(check_in, check_out)

        existing = self._attendance.get_for_user_and_date(user_id, work_date)
        breaks = existing.breaks if existing else ()
        work_minutes, overtime_minutes = self._hours_for(user_id, check_in, check_out, breaks)

        fields = {
            "check_in": check_in,
            "check_out": check_out,
            "status": status,
            "work_minutes": work_minutes,
            "overtime_minutes": overtime_minutes,
            "notes": optional_text(notes),
            "is_manual_entry": True,
            "manual_entry_reason": optional_text(reason) or DEFAULT_MANUAL_ENTRY_REASON,
            "approved_by": int(admin_user_id),
        }
        if existing:
            record = self._attendance.update(existing.attendance_id, expected_version=existing.version, changes=fields)
        else:
            record = self._attendance.create_if_absent(NewAttendance(user_id=int(user_id), work_date=work_date, **fields))

        logger.info("Manual entry user=%s date=%s status=%s by=%s", user_id, work_date, status.value, admin_user_id)
        self._notify(
            "attendance.manual_entry",
            user_id,
            work_date=work_date.isoformat(),
            status=status.value,
            approved_by=int(admin_user_id),
        )
        return record

    def update_record(
        self,
        *,
        current_role: Role,
        admin_user_id: int,
        attendance_id: int,
        check_in: Optional[PunchPatch] = None,
        check_out: Optional[PunchPatch] = None,
        status: Optional[AttendanceStatus] = None,
        notes: Any = UNCHANGED,
        reason: Optional[str] = None,
    ) -> AttendanceRecord:
        """Partial admin edit of one record.

        Given punch fields are merged over the stored punch; anything not given
        is kept. Work hours are recomputed from the merged punches.
        """
        if current_role not in REVIEWER_ROLES:
            raise AuthorizationError("Only administrators can edit attendance")
        record = self._attendance.get_by_id(int(attendance_id))
        if not record:
            raise NotFoundError("Attendance record not found")

        merged_in = _merge_punch(record.check_in, check_in)
        merged_out = _merge_punch(record.check_out, check_out)
        _check_punch_order(merged_in, merged_out)
        work_minutes, overtime_minutes = self._hours_for(record.user_id, merged_in, merged_out, record.breaks)

        changes: dict[str, Any] = {
            "check_in": merged_in,
            "check_out": merged_out,
            "work_minutes": work_minutes,
            "overtime_minutes": overtime_minutes,
            "is_manual_entry": True,
            "manual_entry_reason": optional_text(reason) or DEFAULT_UPDATE_REASON,
            "approved_by": int(admin_user_id),
        }
        if status is not None:
            changes["status"] = AttendanceStatus(status)
        if notes is not UNCHANGED:
            changes["notes"] = optional_text(notes)

        updated = self._attendance.update(record.attendance_id, expected_version=record.version, changes=changes)
        logger.info("Attendance %s updated by=%s", record.attendance_id, admin_user_id)
        self._notify(
            "attendance.updated",
            record.user_id,
            attendance_id=record.attendance_id,
            work_date=record.work_date.isoformat(),
            status=updated.status.value,
            approved_by=int(admin_user_id),
        )
        return updated

    def verify_location(self, user_id: int, *, latitude: Any, longitude: Any) -> LocationCheck:
        """Geofence check against the user's office; nothing is stored.

        Unlike check-in this does not degrade: a missing office raises
        GeofenceNotConfigured.
        """
        point = GeoPoint.parse(latitude, longitude)
        company = self._companies.get_for_user(user_id)
        office = company.office if company else None
        result = self._geofence.evaluate(point, office)
        radius = office.radius_km if office.radius_km is not None else self._geofence.default_radius_km
        return LocationCheck(
            within_office=result.within_office,
            distance_km=result.distance_km,
            radius_km=float(radius),
            office=office,
        )

    def local_date(self, user_id: int, *, now: datetime | None = None) -> date:
        """Today's calendar day in the user's company timezone."""
        company = self._companies.get_for_user(user_id)
        return local_work_date(to_utc(now or self._clock()), self._timezone(company))

    def delete_record(self, *, current_role: Role, attendance_id: int) -> None:
        if current_role not in REVIEWER_ROLES:
            raise AuthorizationError("Only administrators can delete attendance records")
        if not self._attendance.delete(int(attendance_id)):
            raise NotFoundError("Attendance record not found")
        logger.info("Deleted attendance record %s", attendance_id)

    def today(self, user_id: int, *, now: datetime | None = None) -> Optional[AttendanceRecord]:
        return self._attendance.get_for_user_and_date(user_id, self.local_date(user_id, now=now))

    def daily_status(self, user_id: int, work_date: date) -> AttendanceStatus:
        """Status for the day: the record's own, else holiday, weekend or absent."""
        record = self._attendance.get_for_user_and_date(user_id, work_date)
        if record:
            return record.status

        company = self._companies.get_for_user(user_id)
        if company and work_date in company.holidays:
            return AttendanceStatus.HOLIDAY
        if js_weekday(work_date) in self._settings(company).weekend_days:
            return AttendanceStatus.WEEKEND
        return AttendanceStatus.ABSENT
