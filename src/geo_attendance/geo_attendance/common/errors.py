from __future__ import annotations

from flask import Flask
from werkzeug.exceptions import HTTPException

from ..core.exceptions import (
    AlreadyCheckedOut,
    AlreadyReviewed,
    AuthenticationError,
    AuthorizationError,
    DomainError,
    DuplicateAttendance,
    DuplicateCorrection,
    GeofenceNotConfigured,
    InvalidTransition,
    NoCheckInFound,
    NotFoundError,
    ValidationError,
)
from .http import fail

# Most specific first; the first isinstance match wins.
STATUS_BY_ERROR: tuple[tuple[type[DomainError], int], ...] = (
    (ValidationError, 400),
    (NoCheckInFound, 400),
    (AuthenticationError, 401),
    (AuthorizationError, 403),
    (NotFoundError, 404),
    (DuplicateAttendance, 409),
    (AlreadyCheckedOut, 409),
    (DuplicateCorrection, 409),
    (AlreadyReviewed, 409),
    (InvalidTransition, 409),
    (GeofenceNotConfigured, 422),
)


def status_for(exc: DomainError) -> int:
    for error_type, status in STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status
    return 400


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def _domain(e: DomainError):
        status = status_for(e)
        app.logger.info("Request rejected (%s %s): %s", status, e.code, e)
        return fail(str(e) or e.code, status=status, code=e.code)

    @app.errorhandler(HTTPException)
    def _http(e: HTTPException):
        return fail(e.description or e.name, status=e.code or 500)

    @app.errorhandler(Exception)
    def _500(e: Exception):
        app.logger.exception(e)
        return fail("Internal server error", status=500)
