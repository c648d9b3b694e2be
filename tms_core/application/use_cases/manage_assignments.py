"""AssignmentService: the only writer of order assignments.

Every mutation runs one read-validate-write cycle inside a unit of work and
commits only if the order's assignment-set version is unchanged; otherwise the
whole cycle is retried.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields, replace
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from enum import Enum
from typing import Awaitable, Callable, TypeVar

from tms_core.application.ports.unit_of_work import UnitOfWork, WriteConflict
from tms_core.domain.entities.assignment import Assignment
from tms_core.domain.entities.audit_entry import AuditEntry
from tms_core.domain.entities.order import Order
from tms_core.domain.errors import (
    ConcurrentModificationError,
    DeleteForbiddenError,
    DriverAlreadyAssignedError,
    NotFoundError,
    TenantMismatchError,
    ValidationError,
)
from tms_core.domain.policies import temporal_validity
from tms_core.domain.policies.allocation_summary import AllocationSummary, summarize
from tms_core.domain.policies.revenue_allocation import allocate
from tms_core.domain.value_objects.enums import AssignmentReason, AuditAction

logger = logging.getLogger(__name__)

T = TypeVar("T")

EDITABLE_FIELDS = frozenset({
    "vehicle_id",
    "trailer_id",
    "start_date",
    "end_date",
    "revenue_share",
    "allocated_amount",
    "distance_km",
    "reason",
    "reason_note",
    "is_primary",
    "is_active",
})
_NON_NULLABLE_FIELDS = frozenset({"start_date", "revenue_share", "reason", "is_primary", "is_active"})


@dataclass(frozen=True)
class TenantContext:
    """Already-authenticated caller identity."""

    tenant_id: int
    user_id: int | None = None


@dataclass
class NewAssignment:
    driver_id: int
    start_date: date
    revenue_share: float
    vehicle_id: int | None = None
    trailer_id: int | None = None
    end_date: date | None = None
    allocated_amount: Decimal | None = None
    distance_km: float | None = None
    reason: AssignmentReason = AssignmentReason.INITIAL
    reason_note: str | None = None
    is_primary: bool = False


@dataclass
class AssignmentListing:
    order: Order
    assignments: list[Assignment]
    summary: AllocationSummary


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AssignmentService:
    """Create, end, edit and delete assignments while keeping the order consistent."""

    def __init__(
        self,
        uow_factory: Callable[[], UnitOfWork],
        *,
        tolerance: float = temporal_validity.SHARE_TOLERANCE,
        max_attempts: int = 3,
        delete_grace: timedelta = timedelta(minutes=60),
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._uow_factory = uow_factory
        self._tolerance = tolerance
        self._max_attempts = max(1, max_attempts)
        self._delete_grace = delete_grace
        self._clock = clock

    # ─── Reads ───────────────────────────────────────────────────────

    async def get(self, ctx: TenantContext, order_id: int, assignment_id: int) -> Assignment:
        async with self._uow_factory() as uow:
            await self._load_order(uow, ctx, order_id)
            return await self._load_assignment(uow, ctx, order_id, assignment_id)

    async def list_for_order(
        self,
        ctx: TenantContext,
        order_id: int,
        include_inactive: bool = False,
        as_of: date | None = None,
    ) -> AssignmentListing:
        """Assignments of an order plus the allocation summary. Takes no lock."""
        async with self._uow_factory() as uow:
            order = await self._load_order(uow, ctx, order_id)
            assignments = await uow.assignments.list_by_order(
                ctx.tenant_id, order_id, include_inactive=include_inactive
            )
        summary = summarize(assignments, order, as_of=as_of or self._clock().date())
        return AssignmentListing(order=order, assignments=assignments, summary=summary)

    async def history(
        self, ctx: TenantContext, order_id: int, assignment_id: int
    ) -> list[AuditEntry]:
        """Audit trail of one assignment, oldest first. Survives a hard delete."""
        async with self._uow_factory() as uow:
            await self._load_order(uow, ctx, order_id)
            entries = await uow.audit.list_for_assignment(ctx.tenant_id, assignment_id)
        entries = [e for e in entries if (e.metadata or {}).get("orderId") == order_id]
        if not entries:
            raise NotFoundError("Assignment not found", entity="assignment", id=assignment_id)
        return entries

    # ─── Mutations ───────────────────────────────────────────────────

    async def create(self, ctx: TenantContext, order_id: int, command: NewAssignment) -> Assignment:
        async def operation(uow: UnitOfWork, order: Order) -> Assignment:
            existing = await uow.assignments.list_by_order(ctx.tenant_id, order.id)
            await self._check_references(
                uow, ctx, command.driver_id, command.vehicle_id, command.trailer_id
            )
            if any(a.driver_id == command.driver_id and a.is_open() for a in existing):
                raise DriverAlreadyAssignedError(
                    "Driver already has an open assignment on this order; end it first",
                    field="driverId",
                )

            now = self._clock()
            proposed = Assignment(
                id=None,
                tenant_id=ctx.tenant_id,
                order_id=order.id,
                driver_id=command.driver_id,
                vehicle_id=command.vehicle_id,
                trailer_id=command.trailer_id,
                start_date=command.start_date,
                end_date=command.end_date,
                revenue_share=command.revenue_share,
                allocated_amount=command.allocated_amount,
                allocated_amount_overridden=command.allocated_amount is not None,
                distance_km=command.distance_km,
                reason=command.reason,
                reason_note=command.reason_note,
                # The first assignment of an order is its primary one
                is_primary=command.is_primary or not existing,
                is_active=True,
                created_by=ctx.user_id,
                created_at=now,
                updated_at=now,
            )

            # A historical record keeps its flag but never takes over the open primary
            if proposed.is_open():
                view, demoted = _demote_other_primaries(existing, proposed, now)
            else:
                view, demoted = existing, []
            temporal_validity.validate(view, proposed, order, tolerance=self._tolerance)
            proposed.allocated_amount = allocate(
                order.price_net, proposed.revenue_share, command.allocated_amount, order.currency
            )

            await self._persist_demotions(uow, ctx, order, demoted, existing)
            created = await uow.assignments.add(proposed)
            await uow.audit.record(AuditEntry(
                id=None,
                tenant_id=ctx.tenant_id,
                action=AuditAction.CREATE,
                entity_id=created.id,
                user_id=ctx.user_id,
                changes=_diff(None, created),
                metadata=_order_metadata(order),
            ))
            return created

        created = await self._mutate(ctx, order_id, operation)
        logger.info(
            "Order %s: assignment %s created (driver=%s, share=%.3f, primary=%s)",
            order_id, created.id, created.driver_id, created.revenue_share, created.is_primary,
        )
        return created

    async def end(
        self,
        ctx: TenantContext,
        order_id: int,
        assignment_id: int,
        end_date: date | None = None,
        reason: AssignmentReason | None = None,
        reason_note: str | None = None,
    ) -> Assignment:
        """Close an assignment; it stays queryable as history.

        Ending only shrinks coverage, so no overallocation sweep is needed.
        """
        async def operation(uow: UnitOfWork, order: Order) -> Assignment:
            current = await self._load_assignment(uow, ctx, order.id, assignment_id)
            if current.end_date is not None:
                raise ValidationError(
                    "Assignment has already ended; edit it to move the end date",
                    field="endDate",
                )

            closing = end_date or min(self._clock().date(), order.unloading_date)
            updated = replace(
                current,
                end_date=closing,
                reason=reason or current.reason,
                reason_note=reason_note if reason_note is not None else current.reason_note,
                updated_at=self._clock(),
            )
            temporal_validity.check_structure(updated)
            temporal_validity.check_range(updated, order)
            if current.is_primary:
                others = await uow.assignments.list_by_order(ctx.tenant_id, order.id)
                temporal_validity.check_primary(
                    [updated if a.id == updated.id else a for a in others]
                )

            saved = await uow.assignments.update(updated)
            await uow.audit.record(AuditEntry(
                id=None,
                tenant_id=ctx.tenant_id,
                action=AuditAction.END,
                entity_id=saved.id,
                user_id=ctx.user_id,
                changes=_diff(current, saved),
                metadata={**_order_metadata(order), "endDate": closing.isoformat()},
            ))
            return saved

        ended = await self._mutate(ctx, order_id, operation)
        logger.info("Order %s: assignment %s ended on %s", order_id, assignment_id, ended.end_date)
        return ended

    async def edit(
        self,
        ctx: TenantContext,
        order_id: int,
        assignment_id: int,
        changes: dict,
    ) -> Assignment:
        """Apply a partial update and re-validate it against the other assignments.

        *changes* holds only the fields being set; an explicit ``None`` clears a
        nullable field (``end_date=None`` reopens the assignment). The allocated
        amount is recomputed unless *changes* carries a new override.
        """
        _check_editable(changes)

        async def operation(uow: UnitOfWork, order: Order) -> Assignment:
            current = await self._load_assignment(uow, ctx, order.id, assignment_id)
            existing = await uow.assignments.list_by_order(ctx.tenant_id, order.id)
            await self._check_references(
                uow, ctx, None, changes.get("vehicle_id"), changes.get("trailer_id")
            )

            now = self._clock()
            values = {k: v for k, v in changes.items() if k != "allocated_amount"}
            if "reason" in values:
                values["reason"] = _coerce_reason(values["reason"])
            override = changes.get("allocated_amount")
            updated = replace(
                current,
                **values,
                allocated_amount=override,
                allocated_amount_overridden=override is not None,
                updated_at=now,
            )

            if updated.is_open() and any(
                a.id != updated.id and a.driver_id == updated.driver_id and a.is_open()
                for a in existing
            ):
                raise DriverAlreadyAssignedError(
                    "Driver already has another open assignment on this order",
                    field="driverId",
                )

            if changes.get("is_primary") is True and updated.is_open():
                view, demoted = _demote_other_primaries(existing, updated, now)
            else:
                view, demoted = existing, []
            temporal_validity.validate(
                view, updated, order, replacing_id=current.id, tolerance=self._tolerance
            )
            updated.allocated_amount = allocate(
                order.price_net, updated.revenue_share, override, order.currency
            )

            await self._persist_demotions(uow, ctx, order, demoted, existing)
            saved = await uow.assignments.update(updated)
            await uow.audit.record(AuditEntry(
                id=None,
                tenant_id=ctx.tenant_id,
                action=AuditAction.UPDATE,
                entity_id=saved.id,
                user_id=ctx.user_id,
                changes=_diff(current, saved),
                metadata=_order_metadata(order),
            ))
            return saved

        edited = await self._mutate(ctx, order_id, operation)
        logger.info(
            "Order %s: assignment %s edited (%s)", order_id, assignment_id, ", ".join(sorted(changes)),
        )
        return edited

    async def delete(self, ctx: TenantContext, order_id: int, assignment_id: int) -> None:
        """Hard-delete an assignment created within the grace period.

        Older assignments must be ended instead. Deleting the open primary
        promotes the most recently created remaining open assignment.
        """
        async def operation(uow: UnitOfWork, order: Order) -> Assignment | None:
            current = await self._load_assignment(uow, ctx, order.id, assignment_id)
            now = self._clock()
            if current.created_at is None or now - current.created_at > self._delete_grace:
                logger.warning(
                    "Order %s: refusing to delete assignment %s outside the grace period",
                    order.id, assignment_id,
                )
                raise DeleteForbiddenError(
                    "Assignment can no longer be deleted; end it instead",
                    graceMinutes=int(self._delete_grace.total_seconds() // 60),
                )

            existing = await uow.assignments.list_by_order(ctx.tenant_id, order.id)
            await uow.assignments.delete(current.id)

            promoted = None
            if current.is_open_primary():
                candidates = [a for a in existing if a.id != current.id and a.is_open()]
                if candidates:
                    newest = max(candidates, key=lambda a: (a.created_at or now, a.id))
                    promoted = await uow.assignments.update(
                        replace(newest, is_primary=True, updated_at=now)
                    )
                    await uow.audit.record(AuditEntry(
                        id=None,
                        tenant_id=ctx.tenant_id,
                        action=AuditAction.UPDATE,
                        entity_id=promoted.id,
                        user_id=ctx.user_id,
                        changes={"is_primary": {"old": False, "new": True}},
                        metadata={**_order_metadata(order), "promotedAfterDelete": current.id},
                    ))

            await uow.audit.record(AuditEntry(
                id=None,
                tenant_id=ctx.tenant_id,
                action=AuditAction.DELETE,
                entity_id=current.id,
                user_id=ctx.user_id,
                changes=_diff(current, None),
                metadata=_order_metadata(order),
            ))
            return promoted

        promoted = await self._mutate(ctx, order_id, operation)
        logger.info(
            "Order %s: assignment %s deleted%s",
            order_id, assignment_id,
            f", assignment {promoted.id} promoted to primary" if promoted else "",
        )

    # ─── Internals ───────────────────────────────────────────────────

    async def _mutate(
        self,
        ctx: TenantContext,
        order_id: int,
        operation: Callable[[UnitOfWork, Order], Awaitable[T]],
    ) -> T:
        """Run *operation* in a fresh unit of work, retrying on version conflicts."""
        for attempt in range(1, self._max_attempts + 1):
            try:
                async with self._uow_factory() as uow:
                    order = await self._load_order(uow, ctx, order_id)
                    version = await uow.assignments.get_version(order_id)
                    result = await operation(uow, order)
                    if await uow.assignments.bump_version(order_id, version):
                        await uow.commit()
                        return result
            except WriteConflict as e:
                logger.warning("Order %s: write rejected by storage: %s", order_id, e)
            logger.warning(
                "Order %s: assignment set changed concurrently (attempt %d/%d)",
                order_id, attempt, self._max_attempts,
            )
        raise ConcurrentModificationError(
            "Order assignments were modified concurrently, please retry",
            attempts=self._max_attempts,
        )

    async def _load_order(self, uow: UnitOfWork, ctx: TenantContext, order_id: int) -> Order:
        order = await uow.orders.get_order(order_id, ctx.tenant_id)
        if order is None:
            raise NotFoundError("Order not found", entity="order", id=order_id)
        return order

    async def _load_assignment(
        self, uow: UnitOfWork, ctx: TenantContext, order_id: int, assignment_id: int
    ) -> Assignment:
        assignment = await uow.assignments.get_by_id(assignment_id)
        if assignment is None or assignment.order_id != order_id:
            raise NotFoundError("Assignment not found", entity="assignment", id=assignment_id)
        if assignment.tenant_id != ctx.tenant_id:
            raise TenantMismatchError(
                "Assignment not found", entity="assignment", id=assignment_id
            )
        return assignment

    async def _check_references(
        self,
        uow: UnitOfWork,
        ctx: TenantContext,
        driver_id: int | None,
        vehicle_id: int | None,
        trailer_id: int | None,
    ) -> None:
        if driver_id is not None and not await uow.fleet.driver_exists(driver_id, ctx.tenant_id):
            raise NotFoundError("Driver not found or inactive", entity="driver", id=driver_id)
        if vehicle_id is not None and not await uow.fleet.vehicle_exists(vehicle_id, ctx.tenant_id):
            raise NotFoundError("Vehicle not found or inactive", entity="vehicle", id=vehicle_id)
        if trailer_id is not None and not await uow.fleet.trailer_exists(trailer_id, ctx.tenant_id):
            raise NotFoundError("Trailer not found or inactive", entity="trailer", id=trailer_id)

    async def _persist_demotions(
        self,
        uow: UnitOfWork,
        ctx: TenantContext,
        order: Order,
        demoted: list[Assignment],
        previous: list[Assignment],
    ) -> None:
        before = {a.id: a for a in previous}
        for a in demoted:
            saved = await uow.assignments.update(a)
            await uow.audit.record(AuditEntry(
                id=None,
                tenant_id=ctx.tenant_id,
                action=AuditAction.UPDATE,
                entity_id=saved.id,
                user_id=ctx.user_id,
                changes=_diff(before.get(a.id), saved),
                metadata={**_order_metadata(order), "demoted": True},
            ))


# ─── Helpers ─────────────────────────────────────────────────────────


def _check_editable(changes: dict) -> None:
    locked = sorted(set(changes) - EDITABLE_FIELDS)
    if locked:
        raise ValidationError(
            f"Fields cannot be edited: {', '.join(locked)}", fields=locked
        )
    cleared = sorted(k for k in _NON_NULLABLE_FIELDS if k in changes and changes[k] is None)
    if cleared:
        raise ValidationError(
            f"Fields cannot be cleared: {', '.join(cleared)}", fields=cleared
        )


def _coerce_reason(value) -> AssignmentReason:
    try:
        return AssignmentReason(value)
    except ValueError:
        raise ValidationError(f"Unknown assignment reason: {value}", field="reason") from None


def _demote_other_primaries(
    existing: list[Assignment], proposed: Assignment, now: datetime
) -> tuple[list[Assignment], list[Assignment]]:
    """Return the order's assignments as they look after *proposed* takes the primary flag."""
    if not proposed.is_primary:
        return existing, []
    demoted = [
        replace(a, is_primary=False, updated_at=now)
        for a in existing
        if a.is_open_primary() and a.id != proposed.id
    ]
    by_id = {a.id: a for a in demoted}
    return [by_id.get(a.id, a) for a in existing], demoted


def _order_metadata(order: Order) -> dict:
    return {"orderId": order.id, "orderNumber": order.order_number}


def _jsonable(value):
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    return value


_AUDITED_FIELDS = tuple(
    f.name for f in fields(Assignment) if f.name not in ("id", "created_at", "updated_at")
)


def _diff(old: Assignment | None, new: Assignment | None) -> dict | None:
    """Field-level ``{field: {old, new}}`` changes between two versions."""
    changes = {}
    for name in _AUDITED_FIELDS:
        before = _jsonable(getattr(old, name)) if old is not None else None
        after = _jsonable(getattr(new, name)) if new is not None else None
        if before != after:
            changes[name] = {"old": before, "new": after}
    return changes or None
