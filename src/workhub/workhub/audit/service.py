from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

from ..core.enums import Role
from ..core.rbac import require_minimum_role
from ..database.unit_of_work import Repositories, UnitOfWork
from ..users.session import Session
from .model import AuditLogEntry

logger = logging.getLogger(__name__)


def record(
    repos: Repositories,
    *,
    actor_id: Optional[int],
    action: str,
    entity: str,
    entity_id: Optional[int],
    changes: dict[str, Any],
) -> int:
    """Write an audit entry inside the caller's unit of work and log it."""
    audit_id = repos.audit.add(
        user_id=actor_id,
        action=action,
        entity=entity,
        entity_id=entity_id,
        changes=changes,
    )
    logger.info("audit %s %s#%s by user=%s changes=%s", action, entity, entity_id, actor_id, changes)
    return audit_id


class AuditService:
    def __init__(self, uow: UnitOfWork):
        self._uow = uow

    def history(self, actor: Session, *, entity: str, entity_id: int, limit: int = 100) -> Sequence[AuditLogEntry]:
        require_minimum_role(actor.role, Role.HR_ADMIN)
        with self._uow() as repos:
            return repos.audit.list_for_entity(entity=entity, entity_id=int(entity_id), limit=limit)
