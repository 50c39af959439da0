from __future__ import annotations

import logging
from datetime import date
from typing import Callable, Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.validators import require_non_empty, slugify
from ..core.enums import NotificationType, Priority, ProjectStatus, Role, TaskStatus
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..core.rbac import has_minimum_role, require_minimum_role
from ..database.unit_of_work import Repositories, UnitOfWork
from ..notifications.model import NewNotification
from ..notifications.service import notify
from ..users.session import Session
from . import workflow
from .model import Project, Task

logger = logging.getLogger(__name__)

_OUTSIDERS = (Role.CONTRACTOR, Role.GUEST)


class TaskService:
    """Use case: projects and the tasks on their boards."""

    def __init__(self, uow: UnitOfWork, *, clock: Callable = now_local):
        self._uow = uow
        self._clock = clock

    @staticmethod
    def _project_in_org(repos: Repositories, actor: Session, project_id: int) -> Project:
        project = repos.projects.get_project(int(project_id))
        if not project or project.organization_id != actor.organization_id:
            raise NotFoundError("Project not found")
        return project

    def _task_for_update(self, repos: Repositories, actor: Session, task_id: int) -> Task:
        task = repos.tasks.get_task(int(task_id), for_update=True)
        if not task:
            raise NotFoundError("Task not found")
        self._project_in_org(repos, actor, task.project_id)
        if actor.role in _OUTSIDERS and actor.user_id not in task.assignee_ids:
            raise AuthorizationError("Only assignees can update this task")
        return task

    @staticmethod
    def _members_of_org(repos: Repositories, actor: Session, user_ids: Sequence[int]) -> list[int]:
        ids: list[int] = []
        for uid in dict.fromkeys(int(u) for u in user_ids):
            user = repos.users.get_by_id(uid)
            if not user or user.organization_id != actor.organization_id:
                raise ValidationError(f"User {uid} is not a member of this organization")
            ids.append(uid)
        return ids

    # ---- projects ------------------------------------------------------

    def create_project(
        self,
        actor: Session,
        *,
        name: str,
        description: Optional[str] = None,
        status: ProjectStatus = ProjectStatus.ACTIVE,
    ) -> Project:
        require_minimum_role(actor.role, Role.PROJECT_ADMIN)
        name = require_non_empty(name, "Project name")
        with self._uow() as repos:
            project_id = repos.projects.create_project(
                organization_id=actor.organization_id,
                name=name,
                slug=slugify(name),
                status=status,
                description=(description or "").strip() or None,
                created_by=actor.user_id,
            )
            project = repos.projects.get_project(project_id)
        logger.info("Project %s (%s) created by user %s", project_id, name, actor.user_id)
        return project

    def list_projects(self, actor: Session, *, status: Optional[ProjectStatus] = None) -> Sequence[Project]:
        if actor.organization_id is None:
            return []
        with self._uow() as repos:
            return repos.projects.list_projects(actor.organization_id, status=status)

    # ---- tasks ---------------------------------------------------------

    def create_task(
        self,
        actor: Session,
        *,
        project_id: int,
        title: str,
        description: Optional[str] = None,
        priority: Priority = Priority.MEDIUM,
        due_date: Optional[date] = None,
        assignee_ids: Sequence[int] = (),
    ) -> Task:
        if actor.role in _OUTSIDERS:
            raise AuthorizationError("You do not have permission to create tasks")
        title = require_non_empty(title, "Title")

        with self._uow() as repos:
            project = self._project_in_org(repos, actor, project_id)
            assignees = self._members_of_org(repos, actor, assignee_ids)
            task_id = repos.tasks.create_task(
                project_id=project.project_id,
                title=title,
                description=(description or "").strip() or None,
                status=workflow.initial_status(has_assignees=bool(assignees)),
                priority=priority,
                due_date=due_date,
                created_by=actor.user_id,
            )
            if assignees:
                repos.tasks.set_assignees(task_id, assignees)
                self._notify_assigned(repos, actor, task_id, title, assignees)
            return repos.tasks.get_task(task_id)

    def move_task(self, actor: Session, *, task_id: int, status: TaskStatus) -> Task:
        if status == TaskStatus.CANCELLED:
            return self.cancel_task(actor, task_id=task_id)
        with self._uow() as repos:
            task = workflow.transition(self._task_for_update(repos, actor, task_id), status, now=self._clock())
            repos.tasks.save_task(task)
        return task

    def cancel_task(self, actor: Session, *, task_id: int) -> Task:
        with self._uow() as repos:
            current = self._task_for_update(repos, actor, task_id)
            if actor.role in _OUTSIDERS:
                raise AuthorizationError("You do not have permission to cancel tasks")
            task = workflow.transition(current, TaskStatus.CANCELLED, now=self._clock())
            repos.tasks.save_task(task)
        logger.info("Task %s cancelled by user %s", task.task_id, actor.user_id)
        return task

    def reopen_task(self, actor: Session, *, task_id: int) -> Task:
        with self._uow() as repos:
            task = workflow.reopen(self._task_for_update(repos, actor, task_id))
            repos.tasks.save_task(task)
        return task

    def assign(self, actor: Session, *, task_id: int, assignee_ids: Sequence[int]) -> Task:
        if not has_minimum_role(actor.role, Role.TEAM_LEAD):
            raise AuthorizationError("You do not have permission to assign tasks")
        with self._uow() as repos:
            task = self._task_for_update(repos, actor, task_id)
            assignees = self._members_of_org(repos, actor, assignee_ids)
            repos.tasks.set_assignees(task.task_id, assignees)
            added = [uid for uid in assignees if uid not in task.assignee_ids]
            self._notify_assigned(repos, actor, task.task_id, task.title, added)
            return repos.tasks.get_task(task.task_id)

    def list_tasks(self, actor: Session, *, project_id: int, status: Optional[TaskStatus] = None) -> Sequence[Task]:
        with self._uow() as repos:
            self._project_in_org(repos, actor, project_id)
            return repos.tasks.list_tasks(int(project_id), status=status)

    @staticmethod
    def _notify_assigned(repos: Repositories, actor: Session, task_id: int, title: str, user_ids: Sequence[int]) -> None:
        notify(
            repos,
            (
                NewNotification(
                    user_id=uid,
                    type=NotificationType.TASK,
                    title="New task assigned",
                    message=f"{actor.full_name} assigned you to \"{title}\"",
                    action_url=f"/tasks/{task_id}",
                )
                for uid in user_ids
                if uid != actor.user_id
            ),
        )
