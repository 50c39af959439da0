from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime, timedelta
from typing import Any, Callable, Mapping, Optional, Sequence

from ..audit.service import record as audit
from ..common.datetime_utils import iso_or_none, now_local, parse_iso_datetime
from ..common.validators import require_enum, require_non_empty
from ..core.constants import DEFAULT_HISTORY_LIMIT
from ..core.enums import AttendanceStatus, Role
from ..core.exceptions import AlreadyClockedIn, NoActiveSession, NotFoundError, ValidationError
from ..core.rbac import require_minimum_role
from ..database.unit_of_work import Repositories, UnitOfWork
from ..shifts.model import Shift
from ..users.session import Session
from .factory import AttendanceStrategyFactory
from .model import AttendanceRecord, compute_hours

logger = logging.getLogger(__name__)


class AttendanceService:
    """Use case: the daily clock of one user.

    One record per (user, date). Every event runs in its own unit of work and
    locks the current record first: the open one, even when it started on an
    earlier date, otherwise today's.
    """

    def __init__(
        self,
        uow: UnitOfWork,
        strategy_factory: Optional[AttendanceStrategyFactory] = None,
        *,
        clock: Callable[[], datetime] = now_local,
    ):
        self._uow = uow
        self._factory = strategy_factory or AttendanceStrategyFactory()
        self._clock = clock

    @staticmethod
    def _shift_for(repos: Repositories, user_id: int) -> Optional[Shift]:
        user = repos.users.get_by_id(user_id)
        if not user:
            return None
        if user.shift_id:
            shift = repos.shifts.get_by_id(user.shift_id)
            if shift:
                return shift
        if user.organization_id is None:
            return None
        shifts = repos.shifts.list_for_organization(user.organization_id)
        return shifts[0] if shifts else None

    @staticmethod
    def _current_locked(repos: Repositories, user_id: int, today: date) -> AttendanceRecord:
        record = repos.attendance.get_open_for_user(user_id, for_update=True)
        if record is None:
            record = repos.attendance.get_for_user_and_date(user_id, today, for_update=True)
        if not record:
            raise NoActiveSession()
        return record

    def clock_in(self, actor: Session, *, notes: Optional[str] = None) -> AttendanceRecord:
        now = self._clock()
        today = now.date()

        with self._uow() as repos:
            if repos.attendance.get_open_for_user(actor.user_id, for_update=True):
                raise AlreadyClockedIn()
            if repos.attendance.get_for_user_and_date(actor.user_id, today, for_update=True):
                raise AlreadyClockedIn()

            shift = self._shift_for(repos, actor.user_id)
            strategy = self._factory.for_clock_in(now=now, today=today, shift=shift)
            decision = strategy.decide_clock_in(now=now, today=today, shift=shift)
            note = "; ".join(n for n in (decision.note, (notes or "").strip()) if n) or None

            attendance_id = repos.attendance.create_clock_in(
                user_id=actor.user_id,
                work_date=today,
                clock_in=now,
                status=decision.status,
                notes=note,
            )
            record = repos.attendance.get_by_id(attendance_id)

        logger.info("User %s clocked in at %s (%s)", actor.user_id, now.isoformat(), record.status.value)
        return record

    def start_break(self, actor: Session) -> AttendanceRecord:
        now = self._clock()
        with self._uow() as repos:
            record = self._current_locked(repos, actor.user_id, now.date()).start_break(now)
            repos.attendance.save(record)
        return record

    def end_break(self, actor: Session) -> AttendanceRecord:
        now = self._clock()
        with self._uow() as repos:
            record = self._current_locked(repos, actor.user_id, now.date()).end_break(now)
            repos.attendance.save(record)
        return record

    def clock_out(self, actor: Session) -> AttendanceRecord:
        now = self._clock()
        with self._uow() as repos:
            current = self._current_locked(repos, actor.user_id, now.date())
            shift = self._shift_for(repos, actor.user_id)
            record = current.clock_out_at(now, standard_hours=shift.standard_hours if shift else None)

            strategy = self._factory.for_clock_out(record=record, shift=shift)
            decision = strategy.decide_clock_out(record=record, shift=shift)
            record = replace(record, status=decision.status, notes=decision.note)
            repos.attendance.save(record)

        logger.info(
            "User %s clocked out at %s: %.2fh worked, %.2fh overtime",
            actor.user_id,
            now.isoformat(),
            record.work_hours,
            record.overtime_hours,
        )
        return record

    def finalize_day(self, actor: Session, *, day: date) -> int:
        """Lock every finished record of the organization up to and including ``day``."""
        require_minimum_role(actor.role, Role.HR_ADMIN)
        today = self._clock().date()
        if day >= today:
            raise ValidationError("Only past days can be finalized")
        with self._uow() as repos:
            locked = repos.attendance.lock_finished_before(
                organization_id=actor.organization_id, day=day + timedelta(days=1)
            )
        logger.info("Finalized attendance up to %s for organization %s: %s record(s)", day, actor.organization_id, locked)
        return locked

    def admin_override(
        self,
        actor: Session,
        *,
        attendance_id: int,
        changes: Mapping[str, Any],
        reason: str,
    ) -> AttendanceRecord:
        """Correct a record (locked or not); hours are recomputed and the change is audited.

        ``changes`` may hold ``clockIn``, ``clockOut`` (ISO timestamps),
        ``status`` and ``notes``.
        """
        require_minimum_role(actor.role, Role.HR_ADMIN)
        reason = require_non_empty(reason, "Reason")

        with self._uow() as repos:
            before = repos.attendance.get_by_id(int(attendance_id), for_update=True)
            owner = repos.users.get_by_id(before.user_id) if before else None
            if not before or not owner or owner.organization_id != actor.organization_id:
                raise NotFoundError("Attendance record not found")

            after = before
            if "clockIn" in changes:
                after = replace(after, clock_in=parse_iso_datetime(changes.get("clockIn")))
            if "clockOut" in changes:
                after = replace(after, clock_out=parse_iso_datetime(changes.get("clockOut")))
            if "status" in changes:
                after = replace(after, status=require_enum(AttendanceStatus, changes.get("status"), "Status"))
            if "notes" in changes:
                after = replace(after, notes=(changes.get("notes") or "").strip() or None)

            if after.clock_in and after.clock_out:
                if after.clock_out < after.clock_in:
                    raise ValidationError("Clock-out cannot be before clock-in")
                shift = self._shift_for(repos, before.user_id)
                work, overtime = compute_hours(
                    after.clock_in, after.clock_out, after.break_seconds, shift.standard_hours if shift else None
                )
                after = replace(after, work_hours=work, overtime_hours=overtime, on_break=False, break_started_at=None)
            else:
                after = replace(after, work_hours=None, overtime_hours=None)

            repos.attendance.save(after)
            audit(
                repos,
                actor_id=actor.user_id,
                action="ATTENDANCE_OVERRIDE",
                entity="Attendance",
                entity_id=before.attendance_id,
                changes={
                    "reason": reason,
                    "before": _snapshot(before),
                    "after": _snapshot(after),
                },
            )

        logger.warning(
            "Attendance %s of user %s overridden by user %s: %s",
            before.attendance_id,
            before.user_id,
            actor.user_id,
            reason,
        )
        return after

    def today(self, actor: Session) -> Optional[AttendanceRecord]:
        with self._uow() as repos:
            return repos.attendance.get_for_user_and_date(actor.user_id, self._clock().date())

    def history(self, actor: Session, *, limit: int = DEFAULT_HISTORY_LIMIT) -> Sequence[AttendanceRecord]:
        limit = max(1, min(int(limit), 366))
        with self._uow() as repos:
            return repos.attendance.get_recent_for_user(actor.user_id, limit)


def _snapshot(record: AttendanceRecord) -> dict:
    return {
        "status": record.status.value,
        "clockIn": iso_or_none(record.clock_in),
        "clockOut": iso_or_none(record.clock_out),
        "workHours": record.work_hours,
        "notes": record.notes,
    }
