from __future__ import annotations

import logging
from decimal import Decimal
from functools import lru_cache
from typing import Callable, Mapping, Optional, Sequence

from werkzeug.security import check_password_hash, generate_password_hash

from ..audit.service import record as audit
from ..common.datetime_utils import now_local, parse_hhmm
from ..common.validators import normalize_email, require_email, require_min_length, require_non_empty, slugify
from ..core.constants import (
    DEFAULT_LATE_GRACE_MINUTES,
    DEFAULT_LEAVE_TYPES,
    DEFAULT_SHIFT,
    PASSWORD_MIN_LENGTH,
    SESSION_DAYS,
)
from ..core.enums import Role, UserStatus
from ..core.exceptions import (
    AccountInactive,
    AccountSuspended,
    AuthorizationError,
    InvalidCredentials,
    NotFoundError,
    ValidationError,
)
from ..core.rbac import require_can_manage, require_minimum_role
from ..database.unit_of_work import Repositories, UnitOfWork
from .model import User
from .session import Session

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def _placeholder_hash() -> str:
    # Compared against when the email is unknown, so both failure paths hash.
    return generate_password_hash("placeholder-password")


def _verify_password(password_hash: str, password: str) -> bool:
    try:
        return check_password_hash(password_hash, password)
    except (TypeError, ValueError):
        # e.g. placeholder hashes like 'CHANGE_ME' or corrupted values
        return False


class AuthService:
    """Use case: authenticate user (login) and restore sessions."""

    def __init__(
        self,
        uow: UnitOfWork,
        *,
        session_days: int = SESSION_DAYS,
        clock: Callable[[], "datetime"] = now_local,
    ):
        self._uow = uow
        self._session_days = int(session_days)
        self._clock = clock

    def authenticate(self, email: str, password: str) -> Session:
        email = normalize_email(email)
        if not email or not password:
            raise ValidationError("Email and password are required")

        with self._uow() as repos:
            user = repos.users.get_by_email(email)
            ok = _verify_password(user.password_hash if user else _placeholder_hash(), password)
            if user is None or not ok:
                logger.info("Failed sign-in attempt for %s", email)
                raise InvalidCredentials()

            if user.status == UserStatus.SUSPENDED:
                raise AccountSuspended()
            if user.status == UserStatus.INACTIVE:
                raise AccountInactive()

            now = self._clock()
            repos.users.update_last_login(user.user_id, at=now)

        logger.info("User %s signed in at %s", user.email, now.isoformat())
        return Session(
            user_id=user.user_id,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            role=user.role,
            organization_id=user.organization_id,
            issued_at=now,
            lifetime_days=self._session_days,
        )

    def restore(self, claims: Mapping) -> Session:
        """Rebuild a session from signed claims; expired sessions are refused."""
        session = Session.from_claims(claims, lifetime_days=self._session_days)
        return session.ensure_valid(self._clock())


class UserService:
    """Use case: manage organization members (admin)."""

    def __init__(self, uow: UnitOfWork):
        self._uow = uow

    @staticmethod
    def _target_in_org(repos: Repositories, actor: Session, user_id: int) -> User:
        target = repos.users.get_by_id(int(user_id))
        if not target or actor.organization_id is None or target.organization_id != actor.organization_id:
            raise NotFoundError("User not found")
        return target

    def get_profile(self, actor: Session) -> User:
        with self._uow() as repos:
            user = repos.users.get_by_id(actor.user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    def list_members(self, actor: Session) -> Sequence[User]:
        if actor.organization_id is None:
            return []
        with self._uow() as repos:
            return repos.users.list_by_organization(actor.organization_id)

    def change_role(self, actor: Session, *, user_id: int, role: Role) -> User:
        require_minimum_role(actor.role, Role.TEAM_LEAD)
        if int(user_id) == actor.user_id:
            raise AuthorizationError("You cannot change your own role")

        with self._uow() as repos:
            target = self._target_in_org(repos, actor, user_id)
            require_can_manage(actor.role, target.role)
            require_can_manage(actor.role, role)
            if target.role == role:
                return target

            repos.users.update_role(target.user_id, role=role)
            audit(
                repos,
                actor_id=actor.user_id,
                action="USER_ROLE_CHANGED",
                entity="User",
                entity_id=target.user_id,
                changes={"from": target.role.value, "to": role.value},
            )
            return repos.users.get_by_id(target.user_id)

    def set_status(self, actor: Session, *, user_id: int, status: UserStatus) -> User:
        require_minimum_role(actor.role, Role.TEAM_LEAD)
        if int(user_id) == actor.user_id:
            raise AuthorizationError("You cannot change your own status")

        with self._uow() as repos:
            target = self._target_in_org(repos, actor, user_id)
            require_can_manage(actor.role, target.role)
            if target.status == status:
                return target

            repos.users.update_status(target.user_id, status=status)
            audit(
                repos,
                actor_id=actor.user_id,
                action="USER_STATUS_CHANGED",
                entity="User",
                entity_id=target.user_id,
                changes={"from": target.status.value, "to": status.value},
            )
            return repos.users.get_by_id(target.user_id)


class RegistrationService:
    """Use case: self-service sign-up, optionally founding an organization."""

    def __init__(self, uow: UnitOfWork, *, grace_minutes: int = DEFAULT_LATE_GRACE_MINUTES):
        self._uow = uow
        self._grace_minutes = int(grace_minutes)

    def register(
        self,
        *,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
        organization_name: Optional[str] = None,
    ) -> User:
        email = require_email(email)
        require_min_length(password, "Password", PASSWORD_MIN_LENGTH)
        first_name = require_non_empty(first_name, "First name")
        last_name = require_non_empty(last_name, "Last name")
        organization_name = (organization_name or "").strip() or None

        password_hash = generate_password_hash(password)

        with self._uow() as repos:
            if repos.users.get_by_email(email):
                raise ValidationError("An account with this email already exists")

            organization_id = None
            shift_id = None
            if organization_name:
                organization_id, shift_id = self._create_organization(repos, organization_name)

            user_id = repos.users.create_user(
                email=email,
                first_name=first_name,
                last_name=last_name,
                password_hash=password_hash,
                role=Role.SUPER_ADMIN if organization_id else Role.EMPLOYEE,
                status=UserStatus.ACTIVE,
                organization_id=organization_id,
                shift_id=shift_id,
            )
            user = repos.users.get_by_id(user_id)
            audit(
                repos,
                actor_id=user_id,
                action="USER_REGISTERED",
                entity="User",
                entity_id=user_id,
                changes={"email": user.email, "role": user.role.value},
            )

        logger.info("Registered %s (organization=%s)", user.email, organization_id)
        return user

    def _create_organization(self, repos: Repositories, name: str) -> tuple[int, int]:
        base_slug = slugify(name)
        slug = base_slug
        suffix = 2
        while repos.organizations.slug_exists(slug):
            slug = f"{base_slug}-{suffix}"
            suffix += 1

        organization_id = repos.organizations.create(name=name, slug=slug)
        for lt in DEFAULT_LEAVE_TYPES:
            repos.leave.create_leave_type(
                organization_id=organization_id,
                name=lt["name"],
                default_days=Decimal(lt["default_days"]),
                carry_forward=lt["carry_forward"],
                max_carry_forward=Decimal(lt["max_carry_forward"]),
                paid=lt["paid"],
            )
        shift_id = repos.shifts.create_shift(
            organization_id=organization_id,
            shift_name=DEFAULT_SHIFT["name"],
            start_time=parse_hhmm(DEFAULT_SHIFT["start_time"]),
            end_time=parse_hhmm(DEFAULT_SHIFT["end_time"]),
            break_minutes=DEFAULT_SHIFT["break_minutes"],
            grace_minutes=self._grace_minutes,
        )
        return organization_id, shift_id
