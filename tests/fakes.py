"""In-memory repositories and unit of work for service and API tests.

All repositories share one ``InMemoryStore``. ``InMemoryUnitOfWork`` snapshots
the store when a block starts and restores it if the block raises, which is
what the MySQL unit of work does with a transaction.
"""

from __future__ import annotations

import copy
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from src.workhub.workhub.attendance.model import AttendanceRecord, AttendanceReportRow
from src.workhub.workhub.audit.model import AuditLogEntry
from src.workhub.workhub.chat.model import Channel, ChannelMember, ChatMessage
from src.workhub.workhub.core.enums import (
    ChannelType,
    LeaveStatus,
    ProjectStatus,
    Role,
    TaskStatus,
    UserStatus,
)
from src.workhub.workhub.core.exceptions import AlreadyClockedIn
from src.workhub.workhub.database.unit_of_work import Repositories
from src.workhub.workhub.leave.model import LeaveBalance, LeaveRequest, LeaveType
from src.workhub.workhub.notifications.model import NewNotification, Notification
from src.workhub.workhub.shifts.model import Shift
from src.workhub.workhub.tasks.model import Project, Task
from src.workhub.workhub.timetracking.model import TimeEntry
from src.workhub.workhub.users.model import Organization, User

FIXED_NOW = datetime(2026, 3, 10, 9, 0, 0)

ADMIN_EMAIL = "ada@acme.test"
ADMIN_PASSWORD = "Secret123"


class FixedClock:
    """Callable clock; tests move it with ``set``/``advance``."""

    def __init__(self, now: datetime = FIXED_NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def set(self, now: datetime) -> None:
        self.now = now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@dataclass
class InMemoryStore:
    users: dict[int, User] = field(default_factory=dict)
    organizations: dict[int, Organization] = field(default_factory=dict)
    shifts: dict[int, Shift] = field(default_factory=dict)
    leave_types: dict[int, LeaveType] = field(default_factory=dict)
    balances: dict[int, LeaveBalance] = field(default_factory=dict)
    requests: dict[int, LeaveRequest] = field(default_factory=dict)
    attendance: dict[int, AttendanceRecord] = field(default_factory=dict)
    projects: dict[int, Project] = field(default_factory=dict)
    tasks: dict[int, Task] = field(default_factory=dict)
    channels: dict[int, Channel] = field(default_factory=dict)
    members: dict[tuple[int, int], ChannelMember] = field(default_factory=dict)
    messages: dict[int, ChatMessage] = field(default_factory=dict)
    notifications: dict[int, Notification] = field(default_factory=dict)
    audit: dict[int, AuditLogEntry] = field(default_factory=dict)
    time_entries: dict[int, TimeEntry] = field(default_factory=dict)
    seq: int = 0

    def next_id(self) -> int:
        self.seq += 1
        return self.seq

    def row_count(self) -> int:
        return sum(len(v) for v in vars(self).values() if isinstance(v, dict))


class _Repo:
    def __init__(self, store: InMemoryStore, clock: FixedClock):
        self.s = store
        self.clock = clock


class InMemoryUsers(_Repo):
    def get_by_id(self, user_id: int) -> Optional[User]:
        return self.s.users.get(int(user_id))

    def get_by_email(self, email: str) -> Optional[User]:
        return next((u for u in self.s.users.values() if u.email == email), None)

    def create_user(self, *, email, first_name, last_name, password_hash, role, status, organization_id, shift_id=None) -> int:
        if self.get_by_email(email):
            raise RuntimeError("duplicate email")
        uid = self.s.next_id()
        self.s.users[uid] = User(
            user_id=uid,
            email=email,
            first_name=first_name,
            last_name=last_name,
            password_hash=password_hash,
            role=role,
            status=status,
            organization_id=organization_id,
            shift_id=shift_id,
        )
        return uid

    def update_last_login(self, user_id: int, *, at: datetime) -> None:
        self.s.users[user_id] = replace(self.s.users[user_id], last_login=at)

    def update_role(self, user_id: int, *, role: Role) -> bool:
        self.s.users[user_id] = replace(self.s.users[user_id], role=role)
        return True

    def update_status(self, user_id: int, *, status: UserStatus) -> bool:
        self.s.users[user_id] = replace(self.s.users[user_id], status=status)
        return True

    def list_by_organization(self, organization_id: int) -> Sequence[User]:
        users = [u for u in self.s.users.values() if u.organization_id == organization_id]
        return sorted(users, key=lambda u: (u.first_name, u.last_name))


class InMemoryOrganizations(_Repo):
    def create(self, *, name: str, slug: str) -> int:
        oid = self.s.next_id()
        self.s.organizations[oid] = Organization(organization_id=oid, name=name, slug=slug)
        return oid

    def get_by_id(self, organization_id: int) -> Optional[Organization]:
        return self.s.organizations.get(organization_id)

    def slug_exists(self, slug: str) -> bool:
        return any(o.slug == slug for o in self.s.organizations.values())


class InMemoryShifts(_Repo):
    def list_for_organization(self, organization_id: int) -> Sequence[Shift]:
        return [s for s in self.s.shifts.values() if s.organization_id == organization_id]

    def get_by_id(self, shift_id: int) -> Optional[Shift]:
        return self.s.shifts.get(shift_id)

    def create_shift(self, *, organization_id, shift_name, start_time, end_time, break_minutes, grace_minutes) -> int:
        sid = self.s.next_id()
        self.s.shifts[sid] = Shift(
            shift_id=sid,
            organization_id=organization_id,
            shift_name=shift_name,
            start_time=start_time,
            end_time=end_time,
            break_minutes=break_minutes,
            grace_minutes=grace_minutes,
        )
        return sid


class InMemoryLeave(_Repo):
    def create_leave_type(self, *, organization_id, name, default_days, carry_forward, max_carry_forward, paid) -> int:
        lid = self.s.next_id()
        self.s.leave_types[lid] = LeaveType(
            leave_type_id=lid,
            organization_id=organization_id,
            name=name,
            default_days=Decimal(default_days),
            carry_forward=carry_forward,
            max_carry_forward=Decimal(max_carry_forward),
            paid=paid,
        )
        return lid

    def get_leave_type(self, leave_type_id: int) -> Optional[LeaveType]:
        return self.s.leave_types.get(leave_type_id)

    def list_leave_types(self, organization_id: int) -> Sequence[LeaveType]:
        return [lt for lt in self.s.leave_types.values() if lt.organization_id == organization_id]

    def _find_balance(self, user_id, leave_type_id, year) -> Optional[LeaveBalance]:
        return next(
            (
                b
                for b in self.s.balances.values()
                if (b.user_id, b.leave_type_id, b.year) == (user_id, leave_type_id, year)
            ),
            None,
        )

    def ensure_balance(self, *, user_id, leave_type_id, year, entitled) -> None:
        if self._find_balance(user_id, leave_type_id, year):
            return
        bid = self.s.next_id()
        self.s.balances[bid] = LeaveBalance(
            balance_id=bid, user_id=user_id, leave_type_id=leave_type_id, year=year, entitled=Decimal(entitled)
        )

    def get_balance(self, *, user_id, leave_type_id, year, for_update=False) -> Optional[LeaveBalance]:
        return self._find_balance(user_id, leave_type_id, year)

    def save_balance(self, balance: LeaveBalance) -> None:
        self.s.balances[balance.balance_id] = balance

    def list_balances(self, *, user_id, year) -> Sequence[LeaveBalance]:
        items = [b for b in self.s.balances.values() if b.user_id == user_id and b.year == year]
        return sorted(items, key=lambda b: b.leave_type_id)

    def list_balances_for_year(self, *, organization_id, year, for_update=False) -> Sequence[LeaveBalance]:
        return [
            b
            for b in self.s.balances.values()
            if b.year == year and self.s.leave_types[b.leave_type_id].organization_id == organization_id
        ]

    def create_request(self, *, user_id, leave_type_id, start_date, end_date, half_day, days, reason) -> int:
        rid = self.s.next_id()
        self.s.requests[rid] = LeaveRequest(
            request_id=rid,
            user_id=user_id,
            leave_type_id=leave_type_id,
            start_date=start_date,
            end_date=end_date,
            half_day=half_day,
            days=days,
            status=LeaveStatus.PENDING,
            created_at=self.clock(),
            reason=reason,
        )
        return rid

    def get_request(self, request_id: int, *, for_update=False) -> Optional[LeaveRequest]:
        return self.s.requests.get(request_id)

    def update_request(self, request: LeaveRequest) -> None:
        self.s.requests[request.request_id] = request

    def has_overlapping_request(self, *, user_id, start_date, end_date) -> bool:
        return any(
            r.user_id == user_id
            and r.status in (LeaveStatus.PENDING, LeaveStatus.APPROVED)
            and r.start_date <= end_date
            and r.end_date >= start_date
            for r in self.s.requests.values()
        )

    def list_requests(self, *, organization_id, user_id=None, status=None, limit=200) -> Sequence[dict]:
        out = []
        for r in sorted(self.s.requests.values(), key=lambda r: r.request_id, reverse=True):
            u = self.s.users[r.user_id]
            if u.organization_id != organization_id:
                continue
            if user_id is not None and r.user_id != user_id:
                continue
            if status is not None and r.status != status:
                continue
            row = r.to_dict()
            row.update({"userName": u.full_name, "userRole": u.role.value})
            out.append(row)
        return out[:limit]


class InMemoryAttendance(_Repo):
    def get_recent_for_user(self, user_id: int, limit: int) -> Sequence[AttendanceRecord]:
        items = [r for r in self.s.attendance.values() if r.user_id == user_id]
        items.sort(key=lambda r: r.work_date, reverse=True)
        return items[:limit]

    def get_for_user_and_date(self, user_id: int, work_date: date, *, for_update=False) -> Optional[AttendanceRecord]:
        return next(
            (r for r in self.s.attendance.values() if r.user_id == user_id and r.work_date == work_date), None
        )

    def get_open_for_user(self, user_id: int, *, for_update=False) -> Optional[AttendanceRecord]:
        items = [
            r
            for r in self.s.attendance.values()
            if r.user_id == user_id and r.clock_in and r.clock_out is None and not r.locked
        ]
        return max(items, key=lambda r: r.work_date, default=None)

    def get_by_id(self, attendance_id: int, *, for_update=False) -> Optional[AttendanceRecord]:
        return self.s.attendance.get(attendance_id)

    def create_clock_in(self, *, user_id, work_date, clock_in, status, notes=None) -> int:
        if self.get_for_user_and_date(user_id, work_date):
            raise AlreadyClockedIn()
        aid = self.s.next_id()
        self.s.attendance[aid] = AttendanceRecord(
            attendance_id=aid, user_id=user_id, work_date=work_date, status=status, clock_in=clock_in, notes=notes
        )
        return aid

    def save(self, record: AttendanceRecord) -> None:
        self.s.attendance[record.attendance_id] = record

    def lock_finished_before(self, *, organization_id: int, day: date) -> int:
        n = 0
        for aid, r in list(self.s.attendance.items()):
            u = self.s.users[r.user_id]
            if u.organization_id == organization_id and r.work_date < day and r.clock_out and not r.locked:
                self.s.attendance[aid] = replace(r, locked=True)
                n += 1
        return n

    def get_report_rows(self, *, organization_id, start_date, end_date, user_id=None) -> Sequence[AttendanceReportRow]:
        rows = []
        for r in sorted(self.s.attendance.values(), key=lambda r: (r.work_date, r.user_id)):
            u = self.s.users[r.user_id]
            if u.organization_id != organization_id or not (start_date <= r.work_date <= end_date):
                continue
            if user_id is not None and r.user_id != user_id:
                continue
            rows.append(
                AttendanceReportRow(
                    user_id=r.user_id,
                    full_name=u.full_name,
                    email=u.email,
                    work_date=r.work_date,
                    status=r.status,
                    clock_in=r.clock_in,
                    clock_out=r.clock_out,
                    work_hours=r.work_hours,
                    overtime_hours=r.overtime_hours,
                )
            )
        return rows


class InMemoryProjects(_Repo):
    def create_project(self, *, organization_id, name, slug, status, description, created_by) -> int:
        pid = self.s.next_id()
        self.s.projects[pid] = Project(
            project_id=pid,
            organization_id=organization_id,
            name=name,
            slug=slug,
            status=status,
            created_by=created_by,
            description=description,
        )
        return pid

    def get_project(self, project_id: int) -> Optional[Project]:
        return self.s.projects.get(project_id)

    def list_projects(self, organization_id: int, *, status: Optional[ProjectStatus] = None) -> Sequence[Project]:
        return [
            p
            for p in self.s.projects.values()
            if p.organization_id == organization_id and (status is None or p.status == status)
        ]


class InMemoryTasks(_Repo):
    def create_task(self, *, project_id, title, description, status, priority, due_date, created_by) -> int:
        tid = self.s.next_id()
        self.s.tasks[tid] = Task(
            task_id=tid,
            project_id=project_id,
            title=title,
            status=status,
            priority=priority,
            created_by=created_by,
            description=description,
            due_date=due_date,
        )
        return tid

    def get_task(self, task_id: int, *, for_update=False) -> Optional[Task]:
        return self.s.tasks.get(task_id)

    def save_task(self, task: Task) -> None:
        current = self.s.tasks[task.task_id]
        self.s.tasks[task.task_id] = replace(task, assignee_ids=current.assignee_ids)

    def set_assignees(self, task_id: int, user_ids: Sequence[int]) -> None:
        self.s.tasks[task_id] = replace(self.s.tasks[task_id], assignee_ids=tuple(sorted(user_ids)))

    def list_tasks(self, project_id: int, *, status: Optional[TaskStatus] = None) -> Sequence[Task]:
        return [
            t
            for t in self.s.tasks.values()
            if t.project_id == project_id and (status is None or t.status == status)
        ]


class InMemoryChat(_Repo):
    def create_channel(self, *, organization_id, name, description, type: ChannelType, created_by) -> int:
        cid = self.s.next_id()
        self.s.channels[cid] = Channel(
            channel_id=cid,
            organization_id=organization_id,
            name=name,
            type=type,
            created_by=created_by,
            description=description,
        )
        return cid

    def get_channel(self, channel_id: int) -> Optional[Channel]:
        return self.s.channels.get(channel_id)

    def add_members(self, channel_id: int, user_ids: Sequence[int]) -> None:
        for uid in user_ids:
            self.s.members.setdefault((channel_id, uid), ChannelMember(channel_id=channel_id, user_id=uid))

    def get_member(self, channel_id: int, user_id: int) -> Optional[ChannelMember]:
        return self.s.members.get((channel_id, user_id))

    def touch_last_read(self, channel_id: int, user_id: int, *, at: datetime) -> None:
        key = (channel_id, user_id)
        if key in self.s.members:
            self.s.members[key] = replace(self.s.members[key], last_read=at)

    def list_channels_for_user(self, user_id: int) -> Sequence[dict]:
        out = []
        for (cid, uid), member in self.s.members.items():
            if uid != user_id:
                continue
            channel = self.s.channels[cid]
            msgs = [m for m in self.s.messages.values() if m.channel_id == cid]
            last = max(msgs, key=lambda m: m.message_id) if msgs else None
            out.append(
                {
                    **channel.to_dict(),
                    "memberCount": sum(1 for (c, _) in self.s.members if c == cid),
                    "lastRead": member.last_read.isoformat() if member.last_read else None,
                    "lastMessage": last.to_dict() if last else None,
                }
            )
        return sorted(out, key=lambda c: c["name"])

    def list_messages(self, channel_id: int, *, before_id: Optional[int], limit: int) -> Sequence[ChatMessage]:
        msgs = [
            m
            for m in self.s.messages.values()
            if m.channel_id == channel_id and (before_id is None or m.message_id < before_id)
        ]
        msgs.sort(key=lambda m: m.message_id, reverse=True)
        return msgs[:limit]

    def create_message(self, *, channel_id, sender_id, content, parent_id, mentions) -> int:
        mid = self.s.next_id()
        self.s.messages[mid] = ChatMessage(
            message_id=mid,
            channel_id=channel_id,
            sender_id=sender_id,
            content=content,
            created_at=self.clock(),
            parent_id=parent_id,
            mentions=tuple(mentions),
            sender_name=self.s.users[sender_id].full_name,
        )
        return mid

    def get_message(self, message_id: int) -> Optional[ChatMessage]:
        return self.s.messages.get(message_id)


class InMemoryNotifications(_Repo):
    def create_many(self, items: Iterable[NewNotification]) -> int:
        n = 0
        for item in items:
            nid = self.s.next_id()
            self.s.notifications[nid] = Notification(
                notification_id=nid,
                user_id=item.user_id,
                type=item.type,
                title=item.title,
                message=item.message,
                action_url=item.action_url,
                read=False,
                created_at=self.clock(),
            )
            n += 1
        return n

    def list_for_user(self, user_id: int, *, unread_only: bool = False, limit: int = 50) -> Sequence[Notification]:
        items = [
            n
            for n in self.s.notifications.values()
            if n.user_id == user_id and (not unread_only or not n.read)
        ]
        items.sort(key=lambda n: n.notification_id, reverse=True)
        return items[:limit]

    def count_unread(self, user_id: int) -> int:
        return sum(1 for n in self.s.notifications.values() if n.user_id == user_id and not n.read)

    def mark_read(self, user_id: int, *, ids: Optional[Sequence[int]], at: datetime) -> int:
        changed = 0
        for nid, n in list(self.s.notifications.items()):
            if n.user_id != user_id or n.read or (ids is not None and nid not in ids):
                continue
            self.s.notifications[nid] = replace(n, read=True, read_at=at)
            changed += 1
        return changed


class InMemoryAudit(_Repo):
    def add(self, *, user_id, action, entity, entity_id, changes) -> int:
        aid = self.s.next_id()
        self.s.audit[aid] = AuditLogEntry(
            audit_id=aid,
            user_id=user_id,
            action=action,
            entity=entity,
            entity_id=entity_id,
            changes=dict(changes),
            created_at=self.clock(),
        )
        return aid

    def list_for_entity(self, *, entity: str, entity_id: int, limit: int = 100) -> Sequence[AuditLogEntry]:
        items = [a for a in self.s.audit.values() if a.entity == entity and a.entity_id == entity_id]
        return sorted(items, key=lambda a: a.audit_id, reverse=True)[:limit]

    def actions(self) -> list[str]:
        return [a.action for a in self.s.audit.values()]


class InMemoryTimeEntries(_Repo):
    def create_entry(
        self, *, user_id, task_id, project_id, work_date, start_time, end_time, duration_seconds, billable, description
    ) -> int:
        eid = self.s.next_id()
        self.s.time_entries[eid] = TimeEntry(
            entry_id=eid,
            user_id=user_id,
            task_id=task_id,
            project_id=project_id,
            work_date=work_date,
            start_time=start_time,
            end_time=end_time,
            duration_seconds=duration_seconds,
            billable=billable,
            description=description,
        )
        return eid

    def list_for_user(self, user_id: int, *, start_date: date, end_date: date) -> Sequence[TimeEntry]:
        return [
            e
            for e in self.s.time_entries.values()
            if e.user_id == user_id and start_date <= e.work_date <= end_date
        ]


class InMemoryUnitOfWork:
    def __init__(self, store: Optional[InMemoryStore] = None, clock: Optional[FixedClock] = None):
        self.store = store or InMemoryStore()
        self.clock = clock or FixedClock()
        self.commits = 0
        self.rollbacks = 0

    def repositories(self) -> Repositories:
        s, c = self.store, self.clock
        return Repositories(
            users=InMemoryUsers(s, c),
            organizations=InMemoryOrganizations(s, c),
            shifts=InMemoryShifts(s, c),
            leave=InMemoryLeave(s, c),
            attendance=InMemoryAttendance(s, c),
            projects=InMemoryProjects(s, c),
            tasks=InMemoryTasks(s, c),
            chat=InMemoryChat(s, c),
            notifications=InMemoryNotifications(s, c),
            audit=InMemoryAudit(s, c),
            time_entries=InMemoryTimeEntries(s, c),
        )

    @contextmanager
    def __call__(self):
        snapshot = copy.deepcopy(self.store)
        try:
            yield self.repositories()
        except Exception:
            self.rollbacks += 1
            for name, value in vars(snapshot).items():
                setattr(self.store, name, value)
            raise
        self.commits += 1


def add_org(uow: InMemoryUnitOfWork, name: str = "Acme") -> int:
    return uow.repositories().organizations.create(name=name, slug=name.lower())


def add_user(
    uow: InMemoryUnitOfWork,
    *,
    organization_id: Optional[int],
    role: Role = Role.EMPLOYEE,
    email: Optional[str] = None,
    password_hash: str = "x",
    status: UserStatus = UserStatus.ACTIVE,
    shift_id: Optional[int] = None,
    first_name: str = "Test",
    last_name: Optional[str] = None,
) -> int:
    repos = uow.repositories()
    n = uow.store.seq + 1
    return repos.users.create_user(
        email=email or f"user{n}@example.com",
        first_name=first_name,
        last_name=last_name or role.value.title(),
        password_hash=password_hash,
        role=role,
        status=status,
        organization_id=organization_id,
        shift_id=shift_id,
    )


def session_for(uow: InMemoryUnitOfWork, user_id: int, *, issued_at: Optional[datetime] = None):
    from src.workhub.workhub.users.session import Session

    u = uow.store.users[user_id]
    return Session(
        user_id=u.user_id,
        email=u.email,
        first_name=u.first_name,
        last_name=u.last_name,
        role=u.role,
        organization_id=u.organization_id,
        issued_at=issued_at or uow.clock(),
    )
