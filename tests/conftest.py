"""Pytest configuration and shared fixtures.

The fakes below implement the application ports in memory. Each unit of work
works on a private copy of the committed state and publishes it on commit, so
interleaved units of work behave like concurrent transactions.
"""

from __future__ import annotations

import asyncio
import copy
import itertools
from dataclasses import replace
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from tms_core.application.ports.assignment_repo import AssignmentRepository
from tms_core.application.ports.audit_log import AuditLog
from tms_core.application.ports.fleet_directory import FleetDirectory
from tms_core.application.ports.order_directory import OrderDirectory
from tms_core.application.ports.unit_of_work import UnitOfWork, WriteConflict
from tms_core.application.use_cases.manage_assignments import AssignmentService, TenantContext
from tms_core.domain.entities.order import Order

TENANT = 1
OTHER_TENANT = 2
ORDER_ID = 100


# ─── In-memory fakes ────────────────────────────────────────────────


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class FakeDatabase:
    """Committed state shared by all fake units of work."""

    def __init__(self):
        self.orders: dict[int, Order] = {}
        self.drivers: set[tuple[int, int]] = set()
        self.vehicles: set[tuple[int, int]] = set()
        self.trailers: set[tuple[int, int]] = set()
        self.assignments: dict = {}
        self.versions: dict[int, int] = {}
        self.audit: list = []
        self.commits = 0
        self.forced_conflicts = 0
        self.forced_write_conflicts = 0
        self._ids = itertools.count(1)
        self._audit_ids = itertools.count(1)

    def next_id(self) -> int:
        return next(self._ids)

    def next_audit_id(self) -> int:
        return next(self._audit_ids)


class FakeAssignmentRepo(AssignmentRepository):
    def __init__(self, uow: FakeUnitOfWork):
        self._uow = uow
        self._db = uow.db

    async def add(self, assignment):
        await asyncio.sleep(0)
        if self._db.forced_write_conflicts > 0:
            self._db.forced_write_conflicts -= 1
            raise WriteConflict("duplicate key value violates unique constraint")
        stored = replace(assignment, id=self._db.next_id())
        self._uow.rows[stored.id] = copy.deepcopy(stored)
        return stored

    async def update(self, assignment):
        await asyncio.sleep(0)
        if assignment.id not in self._uow.rows:
            raise WriteConflict(f"Assignment {assignment.id} no longer exists")
        self._uow.rows[assignment.id] = copy.deepcopy(assignment)
        return replace(assignment)

    async def delete(self, assignment_id):
        self._uow.rows.pop(assignment_id, None)

    async def get_by_id(self, assignment_id):
        await asyncio.sleep(0)
        found = self._uow.rows.get(assignment_id)
        return copy.deepcopy(found) if found else None

    async def list_by_order(self, tenant_id, order_id, include_inactive=True):
        await asyncio.sleep(0)
        rows = [
            copy.deepcopy(a)
            for a in self._uow.rows.values()
            if a.tenant_id == tenant_id
            and a.order_id == order_id
            and (include_inactive or a.is_active)
        ]
        rows.sort(key=lambda a: a.id, reverse=True)
        rows.sort(key=lambda a: a.start_date, reverse=True)
        rows.sort(key=lambda a: a.is_active, reverse=True)
        return rows

    async def get_version(self, order_id):
        # No yield: the snapshot taken on enter must match this version
        return self._db.versions.get(order_id, 0)

    async def bump_version(self, order_id, expected):
        await asyncio.sleep(0)
        if self._db.forced_conflicts > 0:
            self._db.forced_conflicts -= 1
            return False
        if self._db.versions.get(order_id, 0) != expected:
            return False
        self._db.versions[order_id] = expected + 1
        return True


class FakeOrderDirectory(OrderDirectory):
    def __init__(self, db: FakeDatabase):
        self._db = db

    async def get_order(self, order_id, tenant_id):
        order = self._db.orders.get(order_id)
        if order is None or order.tenant_id != tenant_id:
            return None
        return order


class FakeFleetDirectory(FleetDirectory):
    def __init__(self, db: FakeDatabase):
        self._db = db

    async def driver_exists(self, driver_id, tenant_id):
        return (tenant_id, driver_id) in self._db.drivers

    async def vehicle_exists(self, vehicle_id, tenant_id):
        return (tenant_id, vehicle_id) in self._db.vehicles

    async def trailer_exists(self, trailer_id, tenant_id):
        return (tenant_id, trailer_id) in self._db.trailers


class FakeAuditLog(AuditLog):
    def __init__(self, uow: FakeUnitOfWork):
        self._uow = uow

    async def record(self, entry):
        stored = replace(entry, id=self._uow.db.next_audit_id(), created_at=self._uow.now())
        self._uow.pending_audit.append(stored)
        return stored

    async def list_for_assignment(self, tenant_id, assignment_id):
        return [
            e
            for e in [*self._uow.db.audit, *self._uow.pending_audit]
            if e.tenant_id == tenant_id and e.entity_id == assignment_id
        ]


class FakeUnitOfWork(UnitOfWork):
    def __init__(self, db: FakeDatabase, clock):
        self.db = db
        self.now = clock
        self.rows: dict = {}
        self.pending_audit: list = []

    async def __aenter__(self):
        self.rows = copy.deepcopy(self.db.assignments)
        self.pending_audit = []
        self.assignments = FakeAssignmentRepo(self)
        self.orders = FakeOrderDirectory(self.db)
        self.fleet = FakeFleetDirectory(self.db)
        self.audit = FakeAuditLog(self)
        return self

    async def commit(self):
        self.db.assignments = self.rows
        self.db.audit.extend(self.pending_audit)
        self.db.commits += 1
        self.rows = {}
        self.pending_audit = []

    async def rollback(self):
        self.rows = {}
        self.pending_audit = []


# ─── Fixtures ───────────────────────────────────────────────────────


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 1, 5, 9, 0, tzinfo=timezone.utc))


@pytest.fixture
def order():
    """Order priced 2000 PLN running 2026-01-05..2026-01-06."""
    return Order(
        id=ORDER_ID,
        tenant_id=TENANT,
        loading_date=date(2026, 1, 5),
        unloading_date=date(2026, 1, 6),
        price_net=Decimal("2000.00"),
        currency="PLN",
        order_number="ZL/2026/001",
    )


@pytest.fixture
def db(order):
    database = FakeDatabase()
    database.orders[order.id] = order
    database.orders[200] = Order(
        id=200,
        tenant_id=OTHER_TENANT,
        loading_date=date(2026, 1, 5),
        unloading_date=date(2026, 1, 10),
        price_net=Decimal("500.00"),
        order_number="ZL/2026/200",
    )
    database.orders[300] = Order(
        id=300,
        tenant_id=TENANT,
        loading_date=date(2026, 2, 1),
        unloading_date=date(2026, 2, 28),
        price_net=None,
        order_number="ZL/2026/300",
    )
    for driver_id in (1, 2, 3, 4):
        database.drivers.add((TENANT, driver_id))
    database.drivers.add((OTHER_TENANT, 9))
    database.vehicles.add((TENANT, 11))
    database.trailers.add((TENANT, 21))
    return database


@pytest.fixture
def uow_factory(db, clock):
    return lambda: FakeUnitOfWork(db, clock)


@pytest.fixture
def service(uow_factory, clock):
    return AssignmentService(uow_factory, max_attempts=3, clock=clock)


@pytest.fixture
def ctx():
    return TenantContext(tenant_id=TENANT, user_id=7)


@pytest.fixture
def other_ctx():
    return TenantContext(tenant_id=OTHER_TENANT, user_id=8)
