"""Port interface for the assignment audit trail."""

from abc import ABC, abstractmethod

from tms_core.domain.entities.audit_entry import AuditEntry


class AuditLog(ABC):
    @abstractmethod
    async def record(self, entry: AuditEntry) -> AuditEntry:
        ...

    @abstractmethod
    async def list_for_assignment(self, tenant_id: int, assignment_id: int) -> list[AuditEntry]:
        ...
