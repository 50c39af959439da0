from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Callable, Optional, Sequence

from ..common.datetime_utils import now_local
from ..core.exceptions import NotFoundError, ValidationError
from ..database.unit_of_work import UnitOfWork
from ..users.session import Session
from .model import TimeEntry, TimerState

logger = logging.getLogger(__name__)


class TimeTrackingService:
    """Task timer actions and the time entries they produce.

    The timer itself is passed in and returned; callers decide where it lives
    (the web layer keeps it in the session).
    """

    def __init__(self, uow: UnitOfWork, *, clock: Callable = now_local):
        self._uow = uow
        self._clock = clock

    def start(self, actor: Session, state: TimerState, *, task_id: int) -> TimerState:
        with self._uow() as repos:
            task = repos.tasks.get_task(int(task_id))
            project = repos.projects.get_project(task.project_id) if task else None
            if not project or project.organization_id != actor.organization_id:
                raise NotFoundError("Task not found")
        return state.start(task.task_id, self._clock())

    def describe(self, state: TimerState) -> dict:
        return state.to_dict(self._clock())

    def pause(self, state: TimerState) -> TimerState:
        return state.pause(self._clock())

    def resume(self, state: TimerState) -> TimerState:
        return state.resume(self._clock())

    def stop(
        self,
        actor: Session,
        state: TimerState,
        *,
        description: Optional[str] = None,
        billable: bool = False,
    ) -> tuple[TimeEntry, TimerState]:
        now = self._clock()
        seconds, idle = state.stop(now)

        with self._uow() as repos:
            task = repos.tasks.get_task(state.active_task_id)
            entry_id = repos.time_entries.create_entry(
                user_id=actor.user_id,
                task_id=task.task_id if task else None,
                project_id=task.project_id if task else None,
                work_date=state.started_at.date(),
                start_time=state.started_at,
                end_time=now,
                duration_seconds=seconds,
                billable=bool(billable),
                description=(description or "").strip() or None,
            )
            entries = repos.time_entries.list_for_user(
                actor.user_id, start_date=state.started_at.date(), end_date=now.date()
            )

        logger.info("User %s tracked %ss on task %s", actor.user_id, seconds, state.active_task_id)
        entry = next(e for e in entries if e.entry_id == entry_id)
        return entry, idle

    def list_entries(
        self,
        actor: Session,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Sequence[TimeEntry]:
        end_date = end_date or self._clock().date()
        start_date = start_date or end_date - timedelta(days=6)
        if end_date < start_date:
            raise ValidationError("End date cannot be before start date")
        with self._uow() as repos:
            return repos.time_entries.list_for_user(actor.user_id, start_date=start_date, end_date=end_date)
