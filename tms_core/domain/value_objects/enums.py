"""Domain enums: pure Python, no external dependencies."""

from enum import Enum


class AssignmentReason(str, Enum):
    INITIAL = "INITIAL"
    DRIVER_ILLNESS = "DRIVER_ILLNESS"
    DRIVER_VACATION = "DRIVER_VACATION"
    VEHICLE_BREAKDOWN = "VEHICLE_BREAKDOWN"
    VEHICLE_SERVICE = "VEHICLE_SERVICE"
    SCHEDULE_CONFLICT = "SCHEDULE_CONFLICT"
    CLIENT_REQUEST = "CLIENT_REQUEST"
    OPTIMIZATION = "OPTIMIZATION"
    OTHER = "OTHER"

    def requires_note(self) -> bool:
        return self is AssignmentReason.OTHER


class ErrorCode(str, Enum):
    VALIDATION = "VALIDATION"
    OUT_OF_RANGE = "OUT_OF_RANGE"
    OVERALLOCATED = "OVERALLOCATED"
    NOT_FOUND = "NOT_FOUND"
    TENANT_MISMATCH = "TENANT_MISMATCH"
    PRIMARY_CONFLICT = "PRIMARY_CONFLICT"
    DRIVER_ALREADY_ASSIGNED = "DRIVER_ALREADY_ASSIGNED"
    DELETE_FORBIDDEN = "DELETE_FORBIDDEN"
    CONCURRENT_MODIFICATION = "CONCURRENT_MODIFICATION"


class AuditAction(str, Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    END = "END"
    DELETE = "DELETE"
