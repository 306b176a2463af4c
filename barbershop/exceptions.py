# barbershop/exceptions.py
"""
Domain errors raised by the scheduling core and the booking service.

Routes turn them into HTTP responses with ``to_http_exception()``.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException


class DomainException(Exception):
    status_code = 500

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
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class ValidationException(DomainException):
    """Malformed slot, date or status value."""

    status_code = 422


class NotFoundException(DomainException):
    status_code = 404


class ForbiddenException(DomainException):
    status_code = 403


class ConflictException(DomainException):
    status_code = 409


class SlotUnavailableError(ConflictException):
    """Raised when the requested slot is taken or no longer offered."""

    def __init__(self, staff_id: int, day: str, time: str):
        super().__init__(
            message="Slot no longer available",
            code="SLOT_UNAVAILABLE",
            details={"staff_id": staff_id, "date": day, "time": time},
        )


class InvalidTransitionError(ConflictException):
    def __init__(self, current: str, requested: str):
        super().__init__(
            message=f"Cannot move appointment from {current} to {requested}",
            code="INVALID_TRANSITION",
            details={"current": current, "requested": requested},
        )
