from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional


@dataclass(frozen=True)
class AuditLogEntry:
    audit_id: int
    user_id: Optional[int]
    action: str
    entity: str
    entity_id: Optional[int]
    changes: dict[str, Any] = field(default_factory=dict)
    created_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "id": self.audit_id,
            "userId": self.user_id,
            "action": self.action,
            "entity": self.entity,
            "entityId": self.entity_id,
            "changes": self.changes,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
