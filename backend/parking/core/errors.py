"""
Centralized error handling for the booking engine and API.
Service code raises ParkingError subclasses; routes map them with parking_error_to_http
so they stay thin and new error types are easy to add.
"""
from __future__ import annotations

from fastapi import HTTPException


class ParkingError(Exception):
    """Base for errors the booking engine reports to its caller."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ParkingError):
    """Malformed input, e.g. arrival time outside the permitted window."""


class NotFoundError(ParkingError):
    """Referenced booking or slot does not exist."""


class NoAvailabilityError(ParkingError):
    """No eligible slot at allocation time."""


class ConflictError(ParkingError):
    """Optimistic slot status check lost a race with another writer."""


class InvalidStateError(ParkingError):
    """Transition attempted from a terminal or wrong state."""


# ---------------------------------------------------------------------------
# Constants: status codes
# ---------------------------------------------------------------------------

STATUS_BAD_REQUEST = 400
STATUS_NOT_FOUND = 404
STATUS_CONFLICT = 409
STATUS_INTERNAL_ERROR = 500


# ---------------------------------------------------------------------------
# Error rules: (error type, status_code). First match wins.
# Add new rules here instead of scattering checks in routes.
# ---------------------------------------------------------------------------

PARKING_ERROR_RULES: list[tuple[type[ParkingError], int]] = [
    (ValidationError, STATUS_BAD_REQUEST),
    (NotFoundError, STATUS_NOT_FOUND),
    (NoAvailabilityError, STATUS_CONFLICT),
    (InvalidStateError, STATUS_CONFLICT),
    (ConflictError, STATUS_CONFLICT),
]


def parking_error_to_http(exc: Exception) -> HTTPException:
    """
    Map an exception from a service call into an HTTPException.
    Uses PARKING_ERROR_RULES for known error types; otherwise returns 500 with the exception message.
    """
    for error_type, status_code in PARKING_ERROR_RULES:
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=exc.message)
    return HTTPException(status_code=STATUS_INTERNAL_ERROR, detail=str(exc))


def is_user_error(exc: Exception) -> bool:
    """True for errors the caller can correct (logged at info, not as failures)."""
    return isinstance(exc, ParkingError) and not isinstance(exc, ConflictError)
