from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..core.enums import Priority, ProjectStatus, TaskStatus
from ..database.mysql_base import db_cursor, fetchall, fetchone, for_update as lock_clause
from .model import Project, Task
from .repository import ProjectRepository, TaskRepository

_TASK_COLUMNS = "task_id, project_id, title, description, status, priority, due_date, completed_at, created_by"


def _to_project(r: dict) -> Project:
    return Project(
        project_id=int(r["project_id"]),
        organization_id=int(r["organization_id"]),
        name=r["name"],
        slug=r["slug"],
        status=ProjectStatus(r["status"]),
        created_by=int(r["created_by"]),
        description=r.get("description"),
    )


def _to_task(r: dict, assignees: Sequence[int]) -> Task:
    return Task(
        task_id=int(r["task_id"]),
        project_id=int(r["project_id"]),
        title=r["title"],
        status=TaskStatus(r["status"]),
        priority=Priority(r["priority"]),
        created_by=int(r["created_by"]),
        description=r.get("description"),
        due_date=r.get("due_date"),
        completed_at=r.get("completed_at"),
        assignee_ids=tuple(int(a) for a in assignees),
    )


class MySQLProjectRepository(ProjectRepository):
    def __init__(self, conn_factory):
        self._conn_factory = conn_factory

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO projects(organization_id, name, slug, status, description, created_by)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (int(organization_id), name, slug, status.value, description, int(created_by)),
            )
            return int(cur.lastrowid)

    def get_project(self, project_id: int) -> Optional[Project]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT project_id, organization_id, name, slug, status, description, created_by
                FROM projects
                WHERE project_id=%s
                """,
                (int(project_id),),
            )
            r = fetchone(cur)
            return _to_project(r) if r else None

    def list_projects(self, organization_id: int, *, status: Optional[ProjectStatus] = None) -> Sequence[Project]:
        where = "organization_id=%s"
        params: list[object] = [int(organization_id)]
        if status is not None:
            where += " AND status=%s"
            params.append(status.value)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT project_id, organization_id, name, slug, status, description, created_by
                FROM projects
                WHERE {where}
                ORDER BY name
                """,
                tuple(params),
            )
            return [_to_project(r) for r in fetchall(cur)]


class MySQLTaskRepository(TaskRepository):
    def __init__(self, conn_factory):
        self._conn_factory = conn_factory

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO tasks(project_id, title, description, status, priority, due_date, created_by)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (int(project_id), title, description, status.value, priority.value, due_date, int(created_by)),
            )
            return int(cur.lastrowid)

    def _assignees(self, cur, task_id: int) -> list[int]:
        cur.execute("SELECT user_id FROM task_assignees WHERE task_id=%s ORDER BY user_id", (int(task_id),))
        return [int(r["user_id"]) for r in fetchall(cur)]

    def get_task(self, task_id: int, *, for_update: bool = False) -> Optional[Task]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_TASK_COLUMNS} FROM tasks WHERE task_id=%s" + lock_clause(for_update), (int(task_id),))
            r = fetchone(cur)
            if not r:
                return None
            return _to_task(r, self._assignees(cur, int(r["task_id"])))

    def save_task(self, task: Task) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE tasks
                SET title=%s, description=%s, status=%s, priority=%s, due_date=%s, completed_at=%s
                WHERE task_id=%s
                """,
                (
                    task.title,
                    task.description,
                    task.status.value,
                    task.priority.value,
                    task.due_date,
                    task.completed_at,
                    int(task.task_id),
                ),
            )

    def set_assignees(self, task_id: int, user_ids: Sequence[int]) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM task_assignees WHERE task_id=%s", (int(task_id),))
            if user_ids:
                cur.executemany(
                    "INSERT INTO task_assignees(task_id, user_id) VALUES(%s,%s)",
                    [(int(task_id), int(u)) for u in user_ids],
                )

    def list_tasks(self, project_id: int, *, status: Optional[TaskStatus] = None) -> Sequence[Task]:
        where = "project_id=%s"
        params: list[object] = [int(project_id)]
        if status is not None:
            where += " AND status=%s"
            params.append(status.value)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_TASK_COLUMNS} FROM tasks WHERE {where} ORDER BY task_id", tuple(params))
            rows = fetchall(cur)
            return [_to_task(r, self._assignees(cur, int(r["task_id"]))) for r in rows]
