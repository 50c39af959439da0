from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Any, Mapping, Optional

from ..core.exceptions import InvalidTransition


@dataclass(frozen=True)
class TimerState:
    """Running task timer of one user.

    Session-only state: it lives in the Flask session and is lost on sign-out.
    ``accumulated_seconds`` holds finished segments; ``segment_started_at`` is
    set while the timer is running (not paused).
    """

    active_task_id: Optional[int] = None
    started_at: Optional[datetime] = None
    segment_started_at: Optional[datetime] = None
    accumulated_seconds: int = 0
    paused: bool = False

    @property
    def is_running(self) -> bool:
        return self.active_task_id is not None

    def elapsed_seconds(self, now: datetime) -> int:
        running = 0
        if self.segment_started_at is not None and not self.paused:
            running = max(int((now - self.segment_started_at).total_seconds()), 0)
        return self.accumulated_seconds + running

    def start(self, task_id: int, now: datetime) -> "TimerState":
        if self.is_running:
            raise InvalidTransition("A timer is already running; stop it first")
        return TimerState(active_task_id=int(task_id), started_at=now, segment_started_at=now)

    def pause(self, now: datetime) -> "TimerState":
        if not self.is_running or self.paused:
            raise InvalidTransition("No running timer to pause")
        return replace(self, accumulated_seconds=self.elapsed_seconds(now), segment_started_at=None, paused=True)

    def resume(self, now: datetime) -> "TimerState":
        if not self.is_running or not self.paused:
            raise InvalidTransition("Timer is not paused")
        return replace(self, segment_started_at=now, paused=False)

    def stop(self, now: datetime) -> tuple[int, "TimerState"]:
        """Return the tracked seconds and an idle timer."""
        if not self.is_running:
            raise InvalidTransition("No timer is running")
        return self.elapsed_seconds(now), TimerState()

    def to_session(self) -> dict:
        return {
            "active_task_id": self.active_task_id,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "segment_started_at": self.segment_started_at.isoformat() if self.segment_started_at else None,
            "accumulated_seconds": self.accumulated_seconds,
            "paused": self.paused,
        }

    @classmethod
    def from_session(cls, data: Optional[Mapping[str, Any]]) -> "TimerState":
        if not data:
            return cls()

        def _dt(v) -> Optional[datetime]:
            return datetime.fromisoformat(v) if v else None

        return cls(
            active_task_id=data.get("active_task_id"),
            started_at=_dt(data.get("started_at")),
            segment_started_at=_dt(data.get("segment_started_at")),
            accumulated_seconds=int(data.get("accumulated_seconds") or 0),
            paused=bool(data.get("paused")),
        )

    def to_dict(self, now: datetime) -> dict:
        return {
            "activeTaskId": self.active_task_id,
            "startedAt": self.started_at.isoformat() if self.started_at else None,
            "elapsedSeconds": self.elapsed_seconds(now),
            "isPaused": self.paused,
        }


@dataclass(frozen=True)
class TimeEntry:
    entry_id: int
    user_id: int
    task_id: Optional[int]
    project_id: Optional[int]
    work_date: date
    start_time: datetime
    end_time: datetime
    duration_seconds: int
    billable: bool = False
    description: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.entry_id,
            "taskId": self.task_id,
            "projectId": self.project_id,
            "date": self.work_date.isoformat(),
            "startTime": self.start_time.isoformat(),
            "endTime": self.end_time.isoformat(),
            "duration": self.duration_seconds,
            "billable": self.billable,
            "description": self.description,
        }
