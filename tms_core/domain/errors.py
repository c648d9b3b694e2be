"""Domain errors raised by the assignment policies and the lifecycle service.

Every error carries a stable ``code`` and an HTTP status hint so the API layer
can translate it without knowing the individual classes.
"""

from __future__ import annotations

from datetime import date

from tms_core.domain.value_objects.enums import ErrorCode


class AssignmentError(Exception):
    code: ErrorCode = ErrorCode.VALIDATION
    http_status: int = 400

    def __init__(self, message: str, **details):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        return {"error": self.message, "errorCode": self.code.value, **self.details}


class ValidationError(AssignmentError):
    code = ErrorCode.VALIDATION


class OutOfRangeError(ValidationError):
    """Assignment dates fall outside the order window."""

    code = ErrorCode.OUT_OF_RANGE


class DriverAlreadyAssignedError(ValidationError):
    code = ErrorCode.DRIVER_ALREADY_ASSIGNED


class OverallocatedError(AssignmentError):
    code = ErrorCode.OVERALLOCATED

    def __init__(
        self,
        remaining_share: float,
        window_start: date,
        window_end: date,
        requested_share: float,
    ):
        self.remaining_share = remaining_share
        self.window_start = window_start
        self.window_end = window_end
        super().__init__(
            f"Revenue shares exceed 100% between {window_start.isoformat()} and "
            f"{window_end.isoformat()}: requested {requested_share:.0%}, "
            f"maximum available share: {remaining_share:.0%}",
            remainingShare=remaining_share,
            windowStart=window_start.isoformat(),
            windowEnd=window_end.isoformat(),
            requestedShare=requested_share,
        )


class NotFoundError(AssignmentError):
    code = ErrorCode.NOT_FOUND
    http_status = 404


class TenantMismatchError(NotFoundError):
    """The record exists but belongs to another tenant; reported as not found."""

    code = ErrorCode.TENANT_MISMATCH


class PrimaryConflictError(AssignmentError):
    code = ErrorCode.PRIMARY_CONFLICT
    http_status = 409


class DeleteForbiddenError(AssignmentError):
    code = ErrorCode.DELETE_FORBIDDEN
    http_status = 409


class ConcurrentModificationError(AssignmentError):
    code = ErrorCode.CONCURRENT_MODIFICATION
    http_status = 409
