"""Port interface for a transactional unit of work.

One unit of work is one database transaction. Leaving the ``async with``
block without calling :meth:`commit` discards every change made through it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from tms_core.application.ports.assignment_repo import AssignmentRepository
from tms_core.application.ports.audit_log import AuditLog
from tms_core.application.ports.fleet_directory import FleetDirectory
from tms_core.application.ports.order_directory import OrderDirectory


class WriteConflict(Exception):
    """A storage constraint rejected a write racing another transaction."""


class UnitOfWork(ABC):
    assignments: AssignmentRepository
    orders: OrderDirectory
    fleet: FleetDirectory
    audit: AuditLog

    async def __aenter__(self) -> UnitOfWork:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.rollback()

    @abstractmethod
    async def commit(self) -> None:
        ...

    @abstractmethod
    async def rollback(self) -> None:
        ...
