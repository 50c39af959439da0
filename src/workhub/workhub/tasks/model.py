from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from ..core.enums import Priority, ProjectStatus, TaskStatus


@dataclass(frozen=True)
class Project:
    project_id: int
    organization_id: int
    name: str
    slug: str
    status: ProjectStatus
    created_by: int
    description: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.project_id,
            "name": self.name,
            "slug": self.slug,
            "status": self.status.value,
            "description": self.description,
            "createdBy": self.created_by,
        }


@dataclass(frozen=True)
class Task:
    task_id: int
    project_id: int
    title: str
    status: TaskStatus
    priority: Priority
    created_by: int
    description: Optional[str] = None
    due_date: Optional[date] = None
    completed_at: Optional[datetime] = None
    assignee_ids: tuple[int, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        return {
            "id": self.task_id,
            "projectId": self.project_id,
            "title": self.title,
            "description": self.description,
            "status": self.status.value,
            "priority": self.priority.value,
            "dueDate": self.due_date.isoformat() if self.due_date else None,
            "completedAt": self.completed_at.isoformat() if self.completed_at else None,
            "assignees": list(self.assignee_ids),
            "createdBy": self.created_by,
        }
