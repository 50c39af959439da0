from __future__ import annotations

import re
from enum import Enum
from typing import Optional, Type, TypeVar

from ..core.exceptions import ValidationError

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

E = TypeVar("E", bound=Enum)


def require_non_empty(value: Optional[str], field_name: str) -> str:
    if not value or not str(value).strip():
        raise ValidationError(f"{field_name} is required")
    return str(value).strip()


def require_min_length(value: Optional[str], field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters")
    return value


def normalize_email(value: Optional[str]) -> str:
    return (value or "").strip().lower()


def require_email(value: Optional[str]) -> str:
    email = normalize_email(value)
    if not _EMAIL_RE.match(email):
        raise ValidationError("Invalid email address")
    return email


def require_enum(enum_cls: Type[E], value, field_name: str) -> E:
    try:
        return enum_cls(str(value).upper())
    except ValueError:
        raise ValidationError(f"{field_name} is not valid")


def require_int(value, field_name: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number")


def slugify(text: str) -> str:
    return re.sub(r"\s+", "-", text.strip().lower())
