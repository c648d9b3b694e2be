"""Assignment entity: one driver/vehicle/trailer crew executing an order over time."""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal

from tms_core.domain.value_objects.enums import AssignmentReason


@dataclass
class Assignment:
    id: int | None
    tenant_id: int
    order_id: int
    driver_id: int
    start_date: date
    revenue_share: float
    vehicle_id: int | None = None
    trailer_id: int | None = None
    end_date: date | None = None
    allocated_amount: Decimal | None = None
    allocated_amount_overridden: bool = False
    distance_km: float | None = None
    reason: AssignmentReason = AssignmentReason.INITIAL
    reason_note: str | None = None
    is_primary: bool = False
    is_active: bool = True
    created_by: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def is_open(self) -> bool:
        """Open = still running: active and without an end date."""
        return self.is_active and self.end_date is None

    def is_completed(self) -> bool:
        return self.end_date is not None

    def is_open_primary(self) -> bool:
        return self.is_primary and self.is_open()
