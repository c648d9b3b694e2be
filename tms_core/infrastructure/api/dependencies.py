"""FastAPI dependency injection: wires adapters into the assignment service."""

from __future__ import annotations

from datetime import timedelta
from typing import Callable

from fastapi import Depends, Header, HTTPException

from tms_core.adapters.persistence.database import async_session_factory
from tms_core.adapters.persistence.unit_of_work import SqlUnitOfWork
from tms_core.application.ports.unit_of_work import UnitOfWork
from tms_core.application.use_cases.manage_assignments import (
    AssignmentService,
    TenantContext,
)
from tms_core.config import settings


def get_tenant_context(
    x_tenant_id: int | None = Header(default=None),
    x_user_id: int | None = Header(default=None),
) -> TenantContext:
    """Tenant identity forwarded by the authenticating gateway."""
    if x_tenant_id is None:
        raise HTTPException(status_code=401, detail="Missing tenant context")
    return TenantContext(tenant_id=x_tenant_id, user_id=x_user_id)


def get_uow_factory() -> Callable[[], UnitOfWork]:
    return lambda: SqlUnitOfWork(async_session_factory)


def get_assignment_service(
    uow_factory: Callable[[], UnitOfWork] = Depends(get_uow_factory),
) -> AssignmentService:
    return AssignmentService(
        uow_factory,
        tolerance=settings.revenue_share_tolerance,
        max_attempts=settings.assignment_max_attempts,
        delete_grace=timedelta(minutes=settings.assignment_delete_grace_minutes),
    )
