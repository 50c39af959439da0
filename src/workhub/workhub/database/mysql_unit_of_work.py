from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from ..attendance.mysql_attendance_repository import MySQLAttendanceRepository
from ..audit.mysql_audit_repository import MySQLAuditRepository
from ..chat.mysql_chat_repository import MySQLChatRepository
from ..leave.mysql_leave_repository import MySQLLeaveRepository
from ..notifications.mysql_notification_repository import MySQLNotificationRepository
from ..shifts.mysql_shift_repository import MySQLShiftRepository
from ..tasks.mysql_task_repository import MySQLProjectRepository, MySQLTaskRepository
from ..timetracking.mysql_time_entry_repository import MySQLTimeEntryRepository
from ..users.mysql_user_repository import MySQLOrganizationRepository, MySQLUserRepository
from .connection import BoundConnection, DatabaseConnection
from .unit_of_work import Repositories


def build_repositories(conn_factory) -> Repositories:
    return Repositories(
        users=MySQLUserRepository(conn_factory),
        organizations=MySQLOrganizationRepository(conn_factory),
        shifts=MySQLShiftRepository(conn_factory),
        leave=MySQLLeaveRepository(conn_factory),
        attendance=MySQLAttendanceRepository(conn_factory),
        projects=MySQLProjectRepository(conn_factory),
        tasks=MySQLTaskRepository(conn_factory),
        chat=MySQLChatRepository(conn_factory),
        notifications=MySQLNotificationRepository(conn_factory),
        audit=MySQLAuditRepository(conn_factory),
        time_entries=MySQLTimeEntryRepository(conn_factory),
    )


class MySQLUnitOfWork:
    """Open one connection, run the block in one transaction, commit or roll back."""

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @contextmanager
    def __call__(self) -> Iterator[Repositories]:
        conn = self._conn_factory.connect()
        try:
            conn.start_transaction()
            yield build_repositories(BoundConnection(conn))
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()
