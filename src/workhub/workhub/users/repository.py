from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import Role, UserStatus
from .model import Organization, User


class UserRepository(Protocol):
    """Repository interface for User (credential store included).

    Note (DIP): services depend on this interface, not on a concrete database.
    """

    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError

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
        raise NotImplementedError

    def update_last_login(self, user_id: int, *, at: datetime) -> None:
        raise NotImplementedError

    def update_role(self, user_id: int, *, role: Role) -> bool:
        raise NotImplementedError

    def update_status(self, user_id: int, *, status: UserStatus) -> bool:
        raise NotImplementedError

    def list_by_organization(self, organization_id: int) -> Sequence[User]:
        raise NotImplementedError


class OrganizationRepository(Protocol):
    def create(self, *, name: str, slug: str) -> int:
        raise NotImplementedError

    def get_by_id(self, organization_id: int) -> Optional[Organization]:
        raise NotImplementedError

    def slug_exists(self, slug: str) -> bool:
        raise NotImplementedError
