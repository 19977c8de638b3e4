class DomainError(Exception):
    """Base exception for business rule violations."""

    code = "DOMAIN_ERROR"


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    code = "VALIDATION_ERROR"


class InvalidCoordinate(ValidationError):
    """Raised when a latitude/longitude is missing or out of range."""

    code = "INVALID_COORDINATE"


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid."""

    code = "AUTHENTICATION_FAILED"


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    code = "FORBIDDEN"


class NotFoundError(DomainError):
    """Raised when an attendance record or correction does not exist."""

    code = "NOT_FOUND"


class GeofenceNotConfigured(DomainError):
    """Raised when the employer has no office location to validate against."""

    code = "GEOFENCE_NOT_CONFIGURED"


class DuplicateAttendance(DomainError):
    """Raised when a record already exists for the (user, date) pair."""

    code = "DUPLICATE_ATTENDANCE"


class AlreadyCheckedIn(DuplicateAttendance):
    """Check-in rejected because today's record already exists."""

    code = "ALREADY_CHECKED_IN"


class AlreadyCheckedOut(DomainError):
    code = "ALREADY_CHECKED_OUT"


class NoCheckInFound(DomainError):
    code = "NO_CHECK_IN_FOUND"


class InvalidTransition(DomainError):
    """Raised when a mutation violates the record's state preconditions."""

    code = "INVALID_TRANSITION"


class StaleRecordError(InvalidTransition):
    """Raised when the record changed since it was read (optimistic lock)."""

    code = "STALE_RECORD"


class DuplicateCorrection(DomainError):
    code = "DUPLICATE_CORRECTION"


class AlreadyReviewed(DomainError):
    code = "ALREADY_REVIEWED"
