"""Unit of work: a set of repositories bound to one database transaction.

Services open one unit of work per operation::

    with self._uow() as repos:
        balance = repos.leave.get_balance(..., for_update=True)
        ...

Everything inside the block commits together or rolls back together.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ContextManager, Protocol

from ..attendance.repository import AttendanceRepository
from ..audit.repository import AuditRepository
from ..chat.repository import ChatRepository
from ..leave.repository import LeaveRepository
from ..notifications.repository import NotificationRepository
from ..shifts.repository import ShiftRepository
from ..tasks.repository import ProjectRepository, TaskRepository
from ..timetracking.repository import TimeEntryRepository
from ..users.repository import OrganizationRepository, UserRepository


@dataclass
class Repositories:
    users: UserRepository
    organizations: OrganizationRepository
    shifts: ShiftRepository
    leave: LeaveRepository
    attendance: AttendanceRepository
    projects: ProjectRepository
    tasks: TaskRepository
    chat: ChatRepository
    notifications: NotificationRepository
    audit: AuditRepository
    time_entries: TimeEntryRepository


class UnitOfWork(Protocol):
    def __call__(self) -> ContextManager[Repositories]:
        raise NotImplementedError
