"""AuditEntry entity: one recorded mutation of an assignment."""

from dataclasses import dataclass, field
from datetime import datetime

from tms_core.domain.value_objects.enums import AuditAction


@dataclass
class AuditEntry:
    id: int | None
    tenant_id: int
    action: AuditAction
    entity_id: int
    user_id: int | None = None
    changes: dict | None = field(default=None)
    metadata: dict | None = field(default=None)
    created_at: datetime | None = None
