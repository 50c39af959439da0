"""Role policy: a total order over roles.

``can_manage`` is strict, so a role never manages a peer of equal rank.
"""

from __future__ import annotations

from .enums import Role
from .exceptions import AuthorizationError

ROLE_RANKS: dict[Role, int] = {
    Role.SUPER_ADMIN: 100,
    Role.HR_ADMIN: 80,
    Role.PROJECT_ADMIN: 70,
    Role.TEAM_LEAD: 60,
    Role.EMPLOYEE: 40,
    Role.CONTRACTOR: 30,
    Role.GUEST: 10,
}

_missing = set(Role) - set(ROLE_RANKS)
if _missing:
    raise RuntimeError(f"Roles without a rank: {sorted(r.value for r in _missing)}")
if len(set(ROLE_RANKS.values())) != len(ROLE_RANKS):
    raise RuntimeError("Role ranks must be distinct")


def rank(role: Role) -> int:
    return ROLE_RANKS[Role(role)]


def has_minimum_role(actual: Role, minimum: Role) -> bool:
    return rank(actual) >= rank(minimum)


def can_manage(manager_role: Role, target_role: Role) -> bool:
    return rank(manager_role) > rank(target_role)


def require_minimum_role(actual: Role, minimum: Role) -> None:
    if not has_minimum_role(actual, minimum):
        raise AuthorizationError("You do not have permission to perform this action")


def require_can_manage(manager_role: Role, target_role: Role) -> None:
    if not can_manage(manager_role, target_role):
        raise AuthorizationError("You cannot manage a user with an equal or higher role")


def roles_in_order() -> list[Role]:
    """Roles from highest to lowest rank."""
    return sorted(ROLE_RANKS, key=ROLE_RANKS.__getitem__, reverse=True)
