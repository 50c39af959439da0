from __future__ import annotations

from typing import Any, Optional, Protocol, Sequence

from .model import AuditLogEntry


class AuditRepository(Protocol):
    def add(
        self,
        *,
        user_id: Optional[int],
        action: str,
        entity: str,
        entity_id: Optional[int],
        changes: dict[str, Any],
    ) -> int:
        raise NotImplementedError

    def list_for_entity(self, *, entity: str, entity_id: int, limit: int = 100) -> Sequence[AuditLogEntry]:
        raise NotImplementedError
