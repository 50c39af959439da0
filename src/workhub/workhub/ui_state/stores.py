"""Client UI state containers.

Each container knows which of its fields survive a sign-out (``persisted``)
and which only live as long as the session. The web layer stores the
persisted part in a long-lived cookie and the rest in the Flask session.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field, fields, replace
from typing import Any, Mapping, Optional

from ..core.exceptions import ValidationError

THEMES = ("light", "dark", "system")


def _as_bool(value: Any, name: str) -> bool:
    if isinstance(value, bool):
        return value
    raise ValidationError(f"{name} must be true or false")


@dataclass(frozen=True)
class UIState:
    sidebar_open: bool = True
    sidebar_collapsed: bool = False
    theme: str = "system"
    active_modal: Optional[str] = None

    PERSISTED = ("sidebar_collapsed", "theme")
    _KEYS = {
        "sidebarOpen": "sidebar_open",
        "sidebarCollapsed": "sidebar_collapsed",
        "theme": "theme",
        "activeModal": "active_modal",
    }

    def toggle_sidebar(self) -> "UIState":
        return replace(self, sidebar_open=not self.sidebar_open)

    def set_theme(self, theme: str) -> "UIState":
        theme = (theme or "").strip().lower()
        if theme not in THEMES:
            raise ValidationError("Theme must be light, dark or system")
        return replace(self, theme=theme)

    def open_modal(self, name: str) -> "UIState":
        return replace(self, active_modal=(name or "").strip() or None)

    def close_modal(self) -> "UIState":
        return replace(self, active_modal=None)

    def apply(self, patch: Mapping[str, Any]) -> "UIState":
        """Apply a camelCase patch as sent by the client."""
        unknown = set(patch) - set(self._KEYS)
        if unknown:
            raise ValidationError(f"Unknown UI state field(s): {', '.join(sorted(unknown))}")

        state = self
        if "sidebarOpen" in patch:
            state = replace(state, sidebar_open=_as_bool(patch["sidebarOpen"], "sidebarOpen"))
        if "sidebarCollapsed" in patch:
            state = replace(state, sidebar_collapsed=_as_bool(patch["sidebarCollapsed"], "sidebarCollapsed"))
        if "theme" in patch:
            state = state.set_theme(patch["theme"])
        if "activeModal" in patch:
            state = state.open_modal(patch["activeModal"]) if patch["activeModal"] else state.close_modal()
        return state

    def persisted(self) -> dict:
        return {k: getattr(self, k) for k in self.PERSISTED}

    def session_part(self) -> dict:
        return {k: getattr(self, k) for k in ("sidebar_open", "active_modal")}

    @classmethod
    def load(cls, persisted: Optional[Mapping], session_part: Optional[Mapping]) -> "UIState":
        data = {**(session_part or {}), **(persisted or {})}
        known = {f.name for f in fields(cls)}
        state = replace(cls(), **{k: v for k, v in data.items() if k in known})
        if state.theme not in THEMES:
            state = replace(state, theme="system")
        return state

    def to_dict(self) -> dict:
        return {camel: getattr(self, attr) for camel, attr in self._KEYS.items()}


@dataclass(frozen=True)
class FilterState:
    """Project and task list filters; session only."""

    project_filters: dict = field(default_factory=dict)
    task_filters: dict = field(default_factory=dict)

    _SECTIONS = {"projects": "project_filters", "tasks": "task_filters"}

    def update(self, patch: Mapping[str, Any]) -> "FilterState":
        """Merge ``{"projects": {...}, "tasks": {...}}``; a ``None`` value drops that filter."""
        unknown = set(patch) - set(self._SECTIONS)
        if unknown:
            raise ValidationError(f"Unknown filter section(s): {', '.join(sorted(unknown))}")

        state = self
        for section, attr in self._SECTIONS.items():
            if section not in patch:
                continue
            values = patch[section]
            if not isinstance(values, Mapping):
                raise ValidationError(f"{section} filters must be an object")
            merged = {**getattr(state, attr), **values}
            state = replace(state, **{attr: {k: v for k, v in merged.items() if v is not None}})
        return state

    def reset(self, section: Optional[str] = None) -> "FilterState":
        if section is None:
            return FilterState()
        if section not in self._SECTIONS:
            raise ValidationError(f"Unknown filter section: {section}")
        return replace(self, **{self._SECTIONS[section]: {}})

    @classmethod
    def load(cls, data: Optional[Mapping]) -> "FilterState":
        data = data or {}
        return cls(
            project_filters=dict(data.get("project_filters") or {}),
            task_filters=dict(data.get("task_filters") or {}),
        )

    def to_session(self) -> dict:
        return asdict(self)

    def to_dict(self) -> dict:
        return {"projects": dict(self.project_filters), "tasks": dict(self.task_filters)}


def encode_cookie(data: Mapping) -> str:
    return json.dumps(dict(data), separators=(",", ":"))


def decode_cookie(raw: Optional[str]) -> dict:
    if not raw:
        return {}
    try:
        value = json.loads(raw)
    except ValueError:
        return {}
    return value if isinstance(value, dict) else {}
