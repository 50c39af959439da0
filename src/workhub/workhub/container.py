from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from .attendance.factory import AttendanceStrategyFactory
from .attendance.service import AttendanceService
from .audit.service import AuditService
from .chat.service import ChatService
from .core.constants import DEFAULT_LATE_GRACE_MINUTES, SESSION_DAYS
from .database.connection import DBConfig, DatabaseConnection
from .database.mysql_unit_of_work import MySQLUnitOfWork
from .database.unit_of_work import UnitOfWork
from .leave.service import LeaveLedger
from .notifications.service import NotificationService
from .reports.service import AttendanceReportService
from .tasks.service import TaskService
from .timetracking.service import TimeTrackingService
from .users.service import AuthService, RegistrationService, UserService


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]
    uow: UnitOfWork

    auth_service: AuthService
    registration_service: RegistrationService
    user_service: UserService
    audit_service: AuditService
    leave_ledger: LeaveLedger
    attendance_service: AttendanceService
    task_service: TaskService
    chat_service: ChatService
    notification_service: NotificationService
    time_tracking_service: TimeTrackingService
    report_service: AttendanceReportService


def build_services(
    uow: UnitOfWork,
    *,
    conn: Optional[DatabaseConnection] = None,
    session_days: int = SESSION_DAYS,
    grace_minutes: int = DEFAULT_LATE_GRACE_MINUTES,
    clock: Any = None,
) -> Container:
    """Wire every service over one unit-of-work factory.

    ``clock`` replaces ``datetime.now`` everywhere (tests pin it).
    """
    kw = {"clock": clock} if clock is not None else {}

    return Container(
        conn=conn,
        uow=uow,
        auth_service=AuthService(uow, session_days=session_days, **kw),
        registration_service=RegistrationService(uow, grace_minutes=grace_minutes),
        user_service=UserService(uow),
        audit_service=AuditService(uow),
        leave_ledger=LeaveLedger(uow, **kw),
        attendance_service=AttendanceService(uow, AttendanceStrategyFactory(), **kw),
        task_service=TaskService(uow, **kw),
        chat_service=ChatService(uow, **kw),
        notification_service=NotificationService(uow, **kw),
        time_tracking_service=TimeTrackingService(uow, **kw),
        report_service=AttendanceReportService(uow, **kw),
    )


def build_container(
    *,
    db_config: dict,
    session_days: int = SESSION_DAYS,
    grace_minutes: int = DEFAULT_LATE_GRACE_MINUTES,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_mapping(db_config))
    return build_services(
        MySQLUnitOfWork(conn),
        conn=conn,
        session_days=session_days,
        grace_minutes=grace_minutes,
    )
