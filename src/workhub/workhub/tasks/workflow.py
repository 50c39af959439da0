"""Task workflow.

Non-terminal states move freely between each other (kanban board), any of
them may be cancelled, and the terminal states only leave through ``reopen``.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime

from ..core.enums import TaskStatus
from ..core.exceptions import InvalidTransition
from .model import Task

TERMINAL = frozenset({TaskStatus.DONE, TaskStatus.CANCELLED})
REOPEN_TARGET = TaskStatus.TODO


def initial_status(*, has_assignees: bool) -> TaskStatus:
    return TaskStatus.TODO if has_assignees else TaskStatus.BACKLOG


def is_terminal(status: TaskStatus) -> bool:
    return status in TERMINAL


def can_transition(current: TaskStatus, target: TaskStatus) -> bool:
    return current != target and not is_terminal(current)


def allowed_targets(current: TaskStatus) -> list[TaskStatus]:
    return [s for s in TaskStatus if can_transition(current, s)]


def transition(task: Task, target: TaskStatus, *, now: datetime) -> Task:
    if not can_transition(task.status, target):
        if is_terminal(task.status):
            raise InvalidTransition(f"Task is {task.status.value}; reopen it first")
        raise InvalidTransition(f"Task is already {task.status.value}")
    completed_at = now if target == TaskStatus.DONE else None
    return replace(task, status=target, completed_at=completed_at)


def reopen(task: Task) -> Task:
    if not is_terminal(task.status):
        raise InvalidTransition("Only done or cancelled tasks can be reopened")
    return replace(task, status=REOPEN_TARGET, completed_at=None)
