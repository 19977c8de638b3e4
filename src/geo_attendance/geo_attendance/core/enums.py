from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles used for authorization checks."""

    ADMIN = "ADMIN"
    HR = "HR"
    MANAGER = "MANAGER"
    EMPLOYEE = "EMPLOYEE"
    INTERN = "INTERN"


# Roles allowed to punch in/out for themselves.
ATTENDEE_ROLES = frozenset({Role.EMPLOYEE, Role.INTERN})

# Roles allowed to review corrections and edit attendance directly.
REVIEWER_ROLES = frozenset({Role.ADMIN, Role.HR})


class AttendanceStatus(str, Enum):
    """Normalized daily attendance status stored in the database."""

    PRESENT = "PRESENT"
    ABSENT = "ABSENT"
    LATE = "LATE"
    HALF_DAY = "HALF_DAY"
    ON_LEAVE = "ON_LEAVE"
    HOLIDAY = "HOLIDAY"
    WEEKEND = "WEEKEND"


class CorrectionStatus(str, Enum):
    """Review state of an attendance correction request."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class LatePolicy(str, Enum):
    """How the initial check-in status is decided.

    GEOFENCE: PRESENT inside the office radius, LATE outside it.
    CLOCK: LATE when the check-in is past work start + late threshold.
    """

    GEOFENCE = "GEOFENCE"
    CLOCK = "CLOCK"
