from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

import mysql.connector
from werkzeug.security import generate_password_hash

from ..core.enums import ChannelType, Priority, ProjectStatus, Role, TaskStatus, UserStatus
from ..core.exceptions import ValidationError
from .unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)

DEMO_ORGANIZATION = "Octavertex Media"
DEMO_PASSWORD = "Admin@123"
DEMO_ADMIN = ("admin@octavertex.com", "John", "Doe")
DEMO_MEMBERS = (
    ("sarah.chen@octavertex.com", "Sarah", "Chen", Role.TEAM_LEAD),
    ("lisa.garcia@octavertex.com", "Lisa", "Garcia", Role.HR_ADMIN),
    ("mike.wilson@octavertex.com", "Mike", "Wilson", Role.EMPLOYEE),
    ("emily.brown@octavertex.com", "Emily", "Brown", Role.EMPLOYEE),
    ("david.lee@octavertex.com", "David", "Lee", Role.EMPLOYEE),
)


@dataclass(frozen=True)
class DBTarget:
    host: str
    port: int
    user: str
    password: str
    database: str


def _as_target(db_config: dict) -> DBTarget:
    return DBTarget(
        host=str(db_config.get("host", "localhost")),
        port=int(db_config.get("port", 3306)),
        user=str(db_config.get("user", "root")),
        password=str(db_config.get("password", "")),
        database=str(db_config.get("database", "workhub")),
    )


def _connect(target: DBTarget, *, with_database: bool = True):
    kwargs = {"database": target.database} if with_database else {}
    return mysql.connector.connect(
        host=target.host,
        port=target.port,
        user=target.user,
        password=target.password,
        use_pure=True,
        **kwargs,
    )


def _strip_create_db_and_use(sql: str) -> str:
    # Keep schema.sql compatible regardless of DB name.
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    sql = re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)
    sql = re.sub(r"(?m)^\s*--.*$", "", sql)
    return sql


def iter_sql_statements(sql: str) -> Iterable[str]:
    """Split a script on ``;`` outside of quoted strings."""
    buf: list[str] = []
    quote = None
    escape = False

    for ch in sql:
        if escape:
            buf.append(ch)
            escape = False
            continue
        if ch == "\\":
            buf.append(ch)
            escape = True
            continue
        if ch in ("'", '"'):
            if quote is None:
                quote = ch
            elif quote == ch:
                quote = None
            buf.append(ch)
            continue
        if ch == ";" and quote is None:
            stmt = "".join(buf).strip()
            buf.clear()
            if stmt:
                yield stmt
            continue
        buf.append(ch)

    tail = "".join(buf).strip()
    if tail:
        yield tail


def ensure_database_exists(db_config: dict) -> None:
    target = _as_target(db_config)
    conn = _connect(target, with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{target.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        conn.commit()
    finally:
        conn.close()


def apply_schema(db_config: dict, *, schema_path: str | Path) -> None:
    ensure_database_exists(db_config)
    sql = _strip_create_db_and_use(Path(schema_path).read_text(encoding="utf-8"))

    conn = _connect(_as_target(db_config))
    try:
        cur = conn.cursor()
        for stmt in iter_sql_statements(sql):
            cur.execute(stmt)
        conn.commit()
    finally:
        conn.close()
    logger.info("Schema applied from %s", schema_path)


def list_tables(db_config: dict) -> list[str]:
    conn = _connect(_as_target(db_config))
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()


def seed_demo_data(uow: UnitOfWork, registration_service) -> bool:
    """Create the demo organization with a few members, a project and a channel.

    Returns False when the demo admin already exists.
    """
    email, first_name, last_name = DEMO_ADMIN
    try:
        admin = registration_service.register(
            email=email,
            password=DEMO_PASSWORD,
            first_name=first_name,
            last_name=last_name,
            organization_name=DEMO_ORGANIZATION,
        )
    except ValidationError:
        logger.info("Demo data already present (%s exists)", email)
        return False

    org_id = admin.organization_id
    password_hash = generate_password_hash(DEMO_PASSWORD)
    with uow() as repos:
        member_ids: list[int] = []
        for m_email, m_first, m_last, role in DEMO_MEMBERS:
            member_ids.append(
                repos.users.create_user(
                    email=m_email,
                    first_name=m_first,
                    last_name=m_last,
                    password_hash=password_hash,
                    role=role,
                    status=UserStatus.ACTIVE,
                    organization_id=org_id,
                    shift_id=admin.shift_id,
                )
            )

        project_id = repos.projects.create_project(
            organization_id=org_id,
            name="Website Redesign",
            slug="website-redesign",
            status=ProjectStatus.ACTIVE,
            description="Complete overhaul of the company website",
            created_by=admin.user_id,
        )
        for title, status, priority, assignee in (
            ("Design homepage mockups", TaskStatus.IN_PROGRESS, Priority.HIGH, member_ids[3]),
            ("Set up CI pipeline", TaskStatus.TODO, Priority.MEDIUM, member_ids[4]),
            ("Write content guidelines", TaskStatus.BACKLOG, Priority.LOW, None),
        ):
            task_id = repos.tasks.create_task(
                project_id=project_id,
                title=title,
                description=None,
                status=status,
                priority=priority,
                due_date=None,
                created_by=member_ids[0],
            )
            if assignee:
                repos.tasks.set_assignees(task_id, [assignee])

        channel_id = repos.chat.create_channel(
            organization_id=org_id,
            name="general",
            description="Company-wide announcements and chatter",
            type=ChannelType.PUBLIC,
            created_by=admin.user_id,
        )
        repos.chat.add_members(channel_id, [admin.user_id, *member_ids])
        repos.chat.create_message(
            channel_id=channel_id,
            sender_id=admin.user_id,
            content="Welcome to WorkHub!",
            parent_id=None,
            mentions=[],
        )

    logger.info("Demo organization %s seeded with %s member(s)", DEMO_ORGANIZATION, len(DEMO_MEMBERS) + 1)
    return True
