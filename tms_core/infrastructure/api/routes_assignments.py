"""Order assignment endpoints: list, detail, create, edit / end, delete."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query

from tms_core.application.use_cases.manage_assignments import (
    AssignmentService,
    NewAssignment,
    TenantContext,
)
from tms_core.domain.errors import ValidationError
from tms_core.infrastructure.api.dependencies import get_assignment_service, get_tenant_context
from tms_core.infrastructure.api.schemas import (
    AllocationSummaryResponse,
    AssignmentCreateRequest,
    AssignmentListResponse,
    AssignmentPatchRequest,
    AssignmentResponse,
    AuditEntryResponse,
    AuditHistoryResponse,
    MessageResponse,
)

router = APIRouter(prefix="/orders/{order_id}/assignments", tags=["assignments"])

_END_FIELDS = {"end_date", "reason", "reason_note"}


@router.get("", response_model=AssignmentListResponse)
async def list_assignments(
    order_id: int,
    include_inactive: bool = Query(default=False, alias="includeInactive"),
    as_of: date | None = Query(default=None, alias="asOf"),
    ctx: TenantContext = Depends(get_tenant_context),
    service: AssignmentService = Depends(get_assignment_service),
):
    """List an order's assignments together with its allocation summary."""
    listing = await service.list_for_order(
        ctx, order_id, include_inactive=include_inactive, as_of=as_of
    )
    return AssignmentListResponse(
        data=[AssignmentResponse.from_domain(a) for a in listing.assignments],
        summary=AllocationSummaryResponse.from_domain(listing.summary),
    )


@router.get("/{assignment_id}", response_model=AssignmentResponse)
async def get_assignment(
    order_id: int,
    assignment_id: int,
    ctx: TenantContext = Depends(get_tenant_context),
    service: AssignmentService = Depends(get_assignment_service),
):
    assignment = await service.get(ctx, order_id, assignment_id)
    return AssignmentResponse.from_domain(assignment)


@router.get("/{assignment_id}/history", response_model=AuditHistoryResponse)
async def get_assignment_history(
    order_id: int,
    assignment_id: int,
    ctx: TenantContext = Depends(get_tenant_context),
    service: AssignmentService = Depends(get_assignment_service),
):
    """Audit trail of the assignment, oldest first."""
    entries = await service.history(ctx, order_id, assignment_id)
    return AuditHistoryResponse(data=[AuditEntryResponse.from_domain(e) for e in entries])


@router.post("", response_model=AssignmentResponse, status_code=201)
async def create_assignment(
    order_id: int,
    body: AssignmentCreateRequest,
    ctx: TenantContext = Depends(get_tenant_context),
    service: AssignmentService = Depends(get_assignment_service),
):
    """Assign a driver (and optionally a vehicle / trailer) to the order."""
    assignment = await service.create(ctx, order_id, NewAssignment(**body.model_dump()))
    return AssignmentResponse.from_domain(assignment)


@router.patch("/{assignment_id}", response_model=AssignmentResponse)
async def update_assignment(
    order_id: int,
    assignment_id: int,
    body: AssignmentPatchRequest,
    ctx: TenantContext = Depends(get_tenant_context),
    service: AssignmentService = Depends(get_assignment_service),
):
    """Edit an assignment, or end it with ``{"action": "end"}``."""
    fields = body.model_dump(exclude_unset=True)
    action = fields.pop("action", None)

    if action == "end":
        extra = sorted(set(fields) - _END_FIELDS)
        if extra:
            raise ValidationError(
                f"Ending an assignment only accepts endDate, reason and reasonNote, got: {', '.join(extra)}",
                fields=extra,
            )
        assignment = await service.end(
            ctx,
            order_id,
            assignment_id,
            end_date=fields.get("end_date"),
            reason=fields.get("reason"),
            reason_note=fields.get("reason_note"),
        )
    else:
        assignment = await service.edit(ctx, order_id, assignment_id, fields)

    return AssignmentResponse.from_domain(assignment)


@router.delete("/{assignment_id}", response_model=MessageResponse)
async def delete_assignment(
    order_id: int,
    assignment_id: int,
    ctx: TenantContext = Depends(get_tenant_context),
    service: AssignmentService = Depends(get_assignment_service),
):
    await service.delete(ctx, order_id, assignment_id)
    return MessageResponse(message="Assignment deleted")
