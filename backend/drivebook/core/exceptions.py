# backend/drivebook/core/exceptions.py
"""
Errors raised by the service layer.

Each ``DomainException`` subclass carries its HTTP status; routes convert
them with ``to_http_exception()`` and ``errors.py`` renders the result as a
problem document with ``code`` and ``errors`` members.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status

HTTP_413_CONTENT_TOO_LARGE: int = getattr(status, "HTTP_413_CONTENT_TOO_LARGE", 413)


class DomainException(Exception):
    """A business rule said no. ``code`` is the stable machine-readable name."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_http_exception(self) -> HTTPException:
        """HTTPException whose detail is the ``message``/``code``/``details`` triple."""
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class ValidationException(DomainException):
    """Input is well-formed but breaks a business rule (400)."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundException(DomainException):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictException(DomainException):
    """The current state of the data forbids the change (409)."""

    status_code = status.HTTP_409_CONFLICT


class UnauthorizedException(DomainException):
    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenException(DomainException):
    """Authenticated, but not allowed: wrong role or not a party."""

    status_code = status.HTTP_403_FORBIDDEN


class PayloadTooLargeException(ValidationException):
    status_code = HTTP_413_CONTENT_TOO_LARGE

    def __init__(self, size: int, limit: int):
        super().__init__(
            message=f"File is too large ({size} bytes); the limit is {limit} bytes",
            code="PAYLOAD_TOO_LARGE",
            details={"size": size, "limit": limit},
        )


class UnsupportedMediaException(ValidationException):
    status_code = status.HTTP_415_UNSUPPORTED_MEDIA_TYPE

    def __init__(self, detected: Optional[str] = None):
        super().__init__(
            message="Unsupported file type. Accepted types: jpeg, png, webp",
            code="UNSUPPORTED_MEDIA",
            details={"detected": detected},
        )


class ServiceException(DomainException):
    """Infrastructure failure surfaced by a service, usually the database."""

    def __init__(
        self,
        message: str = "An error occurred processing your request",
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, code, details)


class SlotUnavailableException(ConflictException):
    """Booking refused; ``details.reason`` says whether the slot was taken or lost a race."""

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message or "This time slot is no longer available",
            code="SLOT_UNAVAILABLE",
            details=details or {},
        )


class SlotOverlapException(ConflictException):
    """New slot intersects one of the instructor's existing slots."""

    def __init__(self, new_range: str, conflicting_range: str, conflicting_slot_id: str):
        super().__init__(
            message=f"Slot {new_range} overlaps an existing slot ({conflicting_range})",
            code="SLOT_OVERLAP",
            details={
                "new_slot": new_range,
                "conflicting_slot": conflicting_range,
                "conflicting_slot_id": conflicting_slot_id,
            },
        )


class InvalidStatusTransitionException(ConflictException):
    def __init__(self, current: str, requested: str):
        super().__init__(
            message=f"Cannot change appointment status from {current} to {requested}",
            code="INVALID_STATUS_TRANSITION",
            details={"current_status": current, "requested_status": requested},
        )


class RepositoryException(Exception):
    """
    Data access failed. Not a ``DomainException``: services decide
    whether it becomes a 409, a 500 or something else.
    """
