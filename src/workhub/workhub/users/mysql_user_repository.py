from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import Role, UserStatus
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Organization, User
from .repository import OrganizationRepository, UserRepository

_USER_COLUMNS = """
    user_id, email, first_name, last_name, password_hash, role, status,
    organization_id, department_id, shift_id, last_login
"""


def _to_user(row: dict) -> User:
    return User(
        user_id=int(row["user_id"]),
        email=row["email"],
        first_name=row["first_name"],
        last_name=row["last_name"],
        password_hash=row["password_hash"],
        role=Role(row["role"]),
        status=UserStatus(row["status"]),
        organization_id=row.get("organization_id"),
        department_id=row.get("department_id"),
        shift_id=row.get("shift_id"),
        last_login=row.get("last_login"),
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: int) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_USER_COLUMNS} FROM users WHERE user_id=%s", (int(user_id),))
            row = fetchone(cur)
            return _to_user(row) if row else None

    def get_by_email(self, email: str) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_USER_COLUMNS} FROM users WHERE email=%s", (email,))
            row = fetchone(cur)
            return _to_user(row) if row else None

    def create_user(
        self,
        *,
        email: str,
        first_name: str,
        last_name: str,
        password_hash: str,
        role: Role,
        status: UserStatus,
        organization_id: Optional[int],
        shift_id: Optional[int] = None,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO users(email, first_name, last_name, password_hash, role, status, organization_id, shift_id)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (email, first_name, last_name, password_hash, role.value, status.value, organization_id, shift_id),
            )
            return int(cur.lastrowid)

    def update_last_login(self, user_id: int, *, at: datetime) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE users SET last_login=%s WHERE user_id=%s", (at, int(user_id)))

    def update_role(self, user_id: int, *, role: Role) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE users SET role=%s WHERE user_id=%s", (role.value, int(user_id)))
            return cur.rowcount > 0

    def update_status(self, user_id: int, *, status: UserStatus) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE users SET status=%s WHERE user_id=%s", (status.value, int(user_id)))
            return cur.rowcount > 0

    def list_by_organization(self, organization_id: int) -> Sequence[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_USER_COLUMNS} FROM users WHERE organization_id=%s ORDER BY first_name, last_name",
                (int(organization_id),),
            )
            return [_to_user(r) for r in fetchall(cur)]


class MySQLOrganizationRepository(OrganizationRepository):
    def __init__(self, conn_factory):
        self._conn_factory = conn_factory

    def create(self, *, name: str, slug: str) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("INSERT INTO organizations(name, slug) VALUES(%s,%s)", (name, slug))
            return int(cur.lastrowid)

    def get_by_id(self, organization_id: int) -> Optional[Organization]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT organization_id, name, slug FROM organizations WHERE organization_id=%s",
                (int(organization_id),),
            )
            row = fetchone(cur)
            if not row:
                return None
            return Organization(organization_id=int(row["organization_id"]), name=row["name"], slug=row["slug"])

    def slug_exists(self, slug: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT 1 AS found FROM organizations WHERE slug=%s", (slug,))
            return fetchone(cur) is not None
