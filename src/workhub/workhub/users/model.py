from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import Role, UserStatus


@dataclass(frozen=True)
class User:
    """Domain entity: an account inside (or outside) an organization.

    Plain data object; no database access here.
    """

    user_id: int
    email: str
    first_name: str
    last_name: str
    password_hash: str
    role: Role
    status: UserStatus
    organization_id: Optional[int]
    department_id: Optional[int] = None
    shift_id: Optional[int] = None
    last_login: Optional[datetime] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def public_view(self) -> dict:
        return {
            "id": self.user_id,
            "email": self.email,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "role": self.role.value,
            "status": self.status.value,
            "organizationId": self.organization_id,
        }


@dataclass(frozen=True)
class Organization:
    organization_id: int
    name: str
    slug: str
