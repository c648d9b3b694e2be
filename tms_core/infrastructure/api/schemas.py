"""Request / response DTOs for the assignment API (camelCase on the wire).

The schemas only check types. Range and consistency rules live in the
temporal validity policy so there is exactly one implementation of them.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, PlainSerializer
from pydantic.alias_generators import to_camel

from tms_core.domain.entities.assignment import Assignment
from tms_core.domain.entities.audit_entry import AuditEntry
from tms_core.domain.policies.allocation_summary import AllocationSummary
from tms_core.domain.value_objects.enums import AssignmentReason, AuditAction

Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AssignmentCreateRequest(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    driver_id: int
    vehicle_id: int | None = None
    trailer_id: int | None = None
    start_date: date
    end_date: date | None = None
    revenue_share: float = 1.0
    allocated_amount: Decimal | None = None
    distance_km: float | None = None
    reason: AssignmentReason = AssignmentReason.INITIAL
    reason_note: str | None = None
    is_primary: bool = False


class AssignmentPatchRequest(CamelModel):
    """Either a partial edit, or ``{"action": "end", "endDate"?, "reason"?, "reasonNote"?}``."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    action: Literal["end"] | None = None
    vehicle_id: int | None = None
    trailer_id: int | None = None
    start_date: date | None = None
    end_date: date | None = None
    revenue_share: float | None = None
    allocated_amount: Decimal | None = None
    distance_km: float | None = None
    reason: AssignmentReason | None = None
    reason_note: str | None = None
    is_primary: bool | None = None
    is_active: bool | None = None


class AssignmentResponse(CamelModel):
    id: int
    order_id: int
    driver_id: int
    vehicle_id: int | None
    trailer_id: int | None
    start_date: date
    end_date: date | None
    revenue_share: float
    allocated_amount: Money | None
    allocated_amount_overridden: bool
    distance_km: float | None
    reason: AssignmentReason
    reason_note: str | None
    is_primary: bool
    is_active: bool
    created_by: int | None
    created_at: datetime | None
    updated_at: datetime | None

    @classmethod
    def from_domain(cls, a: Assignment) -> AssignmentResponse:
        return cls(
            id=a.id,
            order_id=a.order_id,
            driver_id=a.driver_id,
            vehicle_id=a.vehicle_id,
            trailer_id=a.trailer_id,
            start_date=a.start_date,
            end_date=a.end_date,
            revenue_share=a.revenue_share,
            allocated_amount=a.allocated_amount,
            allocated_amount_overridden=a.allocated_amount_overridden,
            distance_km=a.distance_km,
            reason=a.reason,
            reason_note=a.reason_note,
            is_primary=a.is_primary,
            is_active=a.is_active,
            created_by=a.created_by,
            created_at=a.created_at,
            updated_at=a.updated_at,
        )


class AllocationSummaryResponse(CamelModel):
    total: int
    active_count: int
    completed_count: int
    total_revenue_share: float
    remaining_share: float
    total_allocated: Money
    order_price: Money | None
    currency: str

    @classmethod
    def from_domain(cls, s: AllocationSummary) -> AllocationSummaryResponse:
        return cls(
            total=s.total,
            active_count=s.active_count,
            completed_count=s.completed_count,
            total_revenue_share=s.total_revenue_share,
            remaining_share=s.remaining_share,
            total_allocated=s.total_allocated,
            order_price=s.order_price,
            currency=s.currency,
        )


class AssignmentListResponse(CamelModel):
    data: list[AssignmentResponse]
    summary: AllocationSummaryResponse


class AuditEntryResponse(CamelModel):
    id: int
    action: AuditAction
    assignment_id: int
    user_id: int | None
    changes: dict | None
    metadata: dict | None
    created_at: datetime | None

    @classmethod
    def from_domain(cls, e: AuditEntry) -> AuditEntryResponse:
        return cls(
            id=e.id,
            action=e.action,
            assignment_id=e.entity_id,
            user_id=e.user_id,
            changes=e.changes,
            metadata=e.metadata,
            created_at=e.created_at,
        )


class AuditHistoryResponse(CamelModel):
    data: list[AuditEntryResponse]


class MessageResponse(CamelModel):
    message: str
