from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Mapping, Optional

from ..core.constants import SESSION_DAYS
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, SessionExpired


@dataclass(frozen=True)
class Session:
    """Claims issued at login and carried by the signed session cookie.

    Stateless: validity is the signature plus ``issued_at``. There is no
    server-side revocation list, and the lifetime is never extended.
    """

    user_id: int
    email: str
    first_name: str
    last_name: str
    role: Role
    organization_id: Optional[int]
    issued_at: datetime
    lifetime_days: int = SESSION_DAYS

    @property
    def expires_at(self) -> datetime:
        return self.issued_at + timedelta(days=self.lifetime_days)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at

    def ensure_valid(self, now: datetime) -> "Session":
        if self.is_expired(now):
            raise SessionExpired()
        return self

    def to_claims(self) -> dict:
        return {
            "user_id": self.user_id,
            "email": self.email,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "role": self.role.value,
            "organization_id": self.organization_id,
            "issued_at": self.issued_at.isoformat(),
        }

    @classmethod
    def from_claims(cls, claims: Mapping[str, Any], *, lifetime_days: int = SESSION_DAYS) -> "Session":
        try:
            return cls(
                user_id=int(claims["user_id"]),
                email=str(claims["email"]),
                first_name=str(claims.get("first_name") or ""),
                last_name=str(claims.get("last_name") or ""),
                role=Role(claims["role"]),
                organization_id=(int(claims["organization_id"]) if claims.get("organization_id") is not None else None),
                issued_at=datetime.fromisoformat(str(claims["issued_at"])),
                lifetime_days=int(lifetime_days),
            )
        except (KeyError, TypeError, ValueError):
            raise AuthenticationError("Unauthorized")

    def public_view(self) -> dict:
        return {
            "id": self.user_id,
            "email": self.email,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "role": self.role.value,
            "organizationId": self.organization_id,
            "expiresAt": self.expires_at.isoformat(),
        }
