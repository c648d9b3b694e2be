"""SQLAlchemy repository implementations."""

from __future__ import annotations

from sqlalchemy import delete, exists, select, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from tms_core.adapters.persistence.models import (
    AssignmentAuditLogModel,
    DriverModel,
    OrderAssignmentModel,
    OrderAssignmentVersionModel,
    OrderModel,
    TrailerModel,
    VehicleModel,
)
from tms_core.application.ports.assignment_repo import AssignmentRepository
from tms_core.application.ports.audit_log import AuditLog
from tms_core.application.ports.fleet_directory import FleetDirectory
from tms_core.application.ports.order_directory import OrderDirectory
from tms_core.application.ports.unit_of_work import WriteConflict
from tms_core.domain.entities.assignment import Assignment
from tms_core.domain.entities.audit_entry import AuditEntry
from tms_core.domain.entities.order import Order
from tms_core.domain.value_objects.enums import AssignmentReason, AuditAction

# ─── Mappers ─────────────────────────────────────────────────────────


def _order_to_domain(m: OrderModel) -> Order:
    return Order(
        id=m.id,
        tenant_id=m.tenant_id,
        order_number=m.order_number,
        loading_date=m.loading_date,
        unloading_date=m.unloading_date,
        price_net=m.price_net,
        currency=m.currency,
    )


def _assignment_to_domain(m: OrderAssignmentModel) -> Assignment:
    return Assignment(
        id=m.id,
        tenant_id=m.tenant_id,
        order_id=m.order_id,
        driver_id=m.driver_id,
        vehicle_id=m.vehicle_id,
        trailer_id=m.trailer_id,
        start_date=m.start_date,
        end_date=m.end_date,
        revenue_share=m.revenue_share,
        allocated_amount=m.allocated_amount,
        allocated_amount_overridden=m.allocated_amount_overridden,
        distance_km=m.distance_km,
        reason=AssignmentReason(m.reason),
        reason_note=m.reason_note,
        is_primary=m.is_primary,
        is_active=m.is_active,
        created_by=m.created_by,
        created_at=m.created_at,
        updated_at=m.updated_at,
    )


def _apply_assignment(m: OrderAssignmentModel, a: Assignment) -> None:
    m.vehicle_id = a.vehicle_id
    m.trailer_id = a.trailer_id
    m.start_date = a.start_date
    m.end_date = a.end_date
    m.revenue_share = a.revenue_share
    m.allocated_amount = a.allocated_amount
    m.allocated_amount_overridden = a.allocated_amount_overridden
    m.distance_km = a.distance_km
    m.reason = a.reason.value
    m.reason_note = a.reason_note
    m.is_primary = a.is_primary
    m.is_active = a.is_active


def _audit_to_domain(m: AssignmentAuditLogModel) -> AuditEntry:
    return AuditEntry(
        id=m.id,
        tenant_id=m.tenant_id,
        action=AuditAction(m.action),
        entity_id=m.entity_id,
        user_id=m.user_id,
        changes=m.changes,
        metadata=m.metadata_,
        created_at=m.created_at,
    )


async def _flush(session: AsyncSession) -> None:
    """Flush pending writes; a constraint violation or a vanished row means a concurrent writer won."""
    try:
        await session.flush()
    except IntegrityError as e:
        raise WriteConflict(str(e.orig)) from e
    except StaleDataError as e:
        raise WriteConflict(str(e)) from e


# ─── Repositories ────────────────────────────────────────────────────


class SqlAssignmentRepository(AssignmentRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def add(self, assignment: Assignment) -> Assignment:
        m = OrderAssignmentModel(
            tenant_id=assignment.tenant_id,
            order_id=assignment.order_id,
            driver_id=assignment.driver_id,
            created_by=assignment.created_by,
        )
        _apply_assignment(m, assignment)
        if assignment.created_at is not None:
            m.created_at = assignment.created_at
            m.updated_at = assignment.updated_at or assignment.created_at
        self._s.add(m)
        await _flush(self._s)
        await self._s.refresh(m)
        return _assignment_to_domain(m)

    async def update(self, assignment: Assignment) -> Assignment:
        m = await self._s.get(OrderAssignmentModel, assignment.id)
        if m is None:
            raise WriteConflict(f"Assignment {assignment.id} no longer exists")
        _apply_assignment(m, assignment)
        await _flush(self._s)
        await self._s.refresh(m)
        return _assignment_to_domain(m)

    async def delete(self, assignment_id: int) -> None:
        await self._s.execute(
            delete(OrderAssignmentModel).where(OrderAssignmentModel.id == assignment_id)
        )
        await _flush(self._s)

    async def get_by_id(self, assignment_id: int) -> Assignment | None:
        m = await self._s.get(OrderAssignmentModel, assignment_id)
        return _assignment_to_domain(m) if m else None

    async def list_by_order(
        self, tenant_id: int, order_id: int, include_inactive: bool = True
    ) -> list[Assignment]:
        stmt = select(OrderAssignmentModel).where(
            OrderAssignmentModel.tenant_id == tenant_id,
            OrderAssignmentModel.order_id == order_id,
        )
        if not include_inactive:
            stmt = stmt.where(OrderAssignmentModel.is_active.is_(True))
        result = await self._s.execute(
            stmt.order_by(
                OrderAssignmentModel.is_active.desc(),
                OrderAssignmentModel.start_date.desc(),
                OrderAssignmentModel.id.desc(),
            )
        )
        return [_assignment_to_domain(m) for m in result.scalars()]

    async def get_version(self, order_id: int) -> int:
        # Concurrent first writers race on the insert; ON CONFLICT keeps both alive
        await self._s.execute(
            insert(OrderAssignmentVersionModel)
            .values(order_id=order_id, version=0)
            .on_conflict_do_nothing(index_elements=["order_id"])
        )
        result = await self._s.execute(
            select(OrderAssignmentVersionModel.version).where(
                OrderAssignmentVersionModel.order_id == order_id
            )
        )
        return result.scalar_one()

    async def bump_version(self, order_id: int, expected: int) -> bool:
        result = await self._s.execute(
            update(OrderAssignmentVersionModel)
            .where(
                OrderAssignmentVersionModel.order_id == order_id,
                OrderAssignmentVersionModel.version == expected,
            )
            .values(version=OrderAssignmentVersionModel.version + 1)
        )
        return result.rowcount == 1


class SqlOrderDirectory(OrderDirectory):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def get_order(self, order_id: int, tenant_id: int) -> Order | None:
        result = await self._s.execute(
            select(OrderModel).where(
                OrderModel.id == order_id, OrderModel.tenant_id == tenant_id
            )
        )
        m = result.scalar_one_or_none()
        return _order_to_domain(m) if m else None


class SqlFleetDirectory(FleetDirectory):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def _exists(self, model, record_id: int, tenant_id: int) -> bool:
        result = await self._s.execute(
            select(
                exists().where(
                    model.id == record_id,
                    model.tenant_id == tenant_id,
                    model.is_active.is_(True),
                )
            )
        )
        return bool(result.scalar())

    async def driver_exists(self, driver_id: int, tenant_id: int) -> bool:
        return await self._exists(DriverModel, driver_id, tenant_id)

    async def vehicle_exists(self, vehicle_id: int, tenant_id: int) -> bool:
        return await self._exists(VehicleModel, vehicle_id, tenant_id)

    async def trailer_exists(self, trailer_id: int, tenant_id: int) -> bool:
        return await self._exists(TrailerModel, trailer_id, tenant_id)


class SqlAuditLog(AuditLog):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def record(self, entry: AuditEntry) -> AuditEntry:
        m = AssignmentAuditLogModel(
            tenant_id=entry.tenant_id,
            user_id=entry.user_id,
            action=entry.action.value,
            entity_id=entry.entity_id,
            changes=entry.changes,
            metadata_=entry.metadata,
        )
        self._s.add(m)
        await self._s.flush()
        await self._s.refresh(m)
        return _audit_to_domain(m)

    async def list_for_assignment(self, tenant_id: int, assignment_id: int) -> list[AuditEntry]:
        result = await self._s.execute(
            select(AssignmentAuditLogModel)
            .where(
                AssignmentAuditLogModel.tenant_id == tenant_id,
                AssignmentAuditLogModel.entity_id == assignment_id,
            )
            .order_by(AssignmentAuditLogModel.id)
        )
        return [_audit_to_domain(m) for m in result.scalars()]
