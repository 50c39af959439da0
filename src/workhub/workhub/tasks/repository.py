from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..core.enums import Priority, ProjectStatus, TaskStatus
from .model import Project, Task


class ProjectRepository(Protocol):
    def create_project(
        self,
        *,
        organization_id: int,
        name: str,
        slug: str,
        status: ProjectStatus,
        description: Optional[str],
        created_by: int,
    ) -> int:
        raise NotImplementedError

    def get_project(self, project_id: int) -> Optional[Project]:
        raise NotImplementedError

    def list_projects(self, organization_id: int, *, status: Optional[ProjectStatus] = None) -> Sequence[Project]:
        raise NotImplementedError


class TaskRepository(Protocol):
    def create_task(
        self,
        *,
        project_id: int,
        title: str,
        description: Optional[str],
        status: TaskStatus,
        priority: Priority,
        due_date: Optional[date],
        created_by: int,
    ) -> int:
        raise NotImplementedError

    def get_task(self, task_id: int, *, for_update: bool = False) -> Optional[Task]:
        raise NotImplementedError

    def save_task(self, task: Task) -> None:
        raise NotImplementedError

    def set_assignees(self, task_id: int, user_ids: Sequence[int]) -> None:
        raise NotImplementedError

    def list_tasks(self, project_id: int, *, status: Optional[TaskStatus] = None) -> Sequence[Task]:
        raise NotImplementedError
