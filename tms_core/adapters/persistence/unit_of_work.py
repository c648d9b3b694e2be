"""SQLAlchemy unit of work: one AsyncSession transaction per instance."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tms_core.adapters.persistence.repositories import (
    SqlAssignmentRepository,
    SqlAuditLog,
    SqlFleetDirectory,
    SqlOrderDirectory,
)
from tms_core.application.ports.unit_of_work import UnitOfWork


class SqlUnitOfWork(UnitOfWork):
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory
        self._session: AsyncSession | None = None

    async def __aenter__(self) -> SqlUnitOfWork:
        self._session = self._session_factory()
        self.assignments = SqlAssignmentRepository(self._session)
        self.orders = SqlOrderDirectory(self._session)
        self.fleet = SqlFleetDirectory(self._session)
        self.audit = SqlAuditLog(self._session)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        try:
            await self.rollback()
        finally:
            await self._session.close()
            self._session = None

    async def commit(self) -> None:
        await self._session.commit()

    async def rollback(self) -> None:
        await self._session.rollback()
