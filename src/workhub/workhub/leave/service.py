from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date
from decimal import Decimal
from typing import Callable, Optional, Sequence

from ..audit.service import record as audit
from ..common.datetime_utils import inclusive_days, now_local
from ..common.validators import require_non_empty
from ..core.enums import LeaveStatus, NotificationType, Role
from ..core.exceptions import (
    AlreadyDecided,
    AuthorizationError,
    ConflictError,
    InsufficientBalance,
    NotFoundError,
    ValidationError,
)
from ..core.rbac import can_manage, has_minimum_role, require_can_manage, require_minimum_role, roles_in_order
from ..database.unit_of_work import Repositories, UnitOfWork
from ..notifications.model import NewNotification
from ..notifications.service import notify
from ..users.session import Session
from .model import LeaveBalance, LeaveRequest, LeaveType

logger = logging.getLogger(__name__)

HALF = Decimal("0.5")


def _may_decide(actor: Session, requester_id: int, requester_role: Role) -> bool:
    if requester_role == roles_in_order()[0]:
        return has_minimum_role(actor.role, requester_role)
    return requester_id != actor.user_id and can_manage(actor.role, requester_role)


def requested_days(start_date: date, end_date: date, *, half_day: bool) -> Decimal:
    if end_date < start_date:
        raise ValidationError("End date cannot be before start date")
    if start_date.year != end_date.year:
        raise ValidationError("A leave request cannot span two calendar years")
    if half_day:
        if start_date != end_date:
            raise ValidationError("A half-day leave must start and end on the same day")
        return HALF
    return Decimal(inclusive_days(start_date, end_date))


class LeaveLedger:
    """Leave requests and the per-year balances they draw from.

    Each balance keeps ``available = entitled + carried_over - used - pending``
    non-negative. Every operation below runs in one unit of work and reads the
    balance row with a lock before changing it.
    """

    def __init__(self, uow: UnitOfWork, *, clock: Callable = now_local):
        self._uow = uow
        self._clock = clock

    # ---- helpers -------------------------------------------------------

    @staticmethod
    def _leave_type_in_org(repos: Repositories, actor: Session, leave_type_id: int) -> LeaveType:
        lt = repos.leave.get_leave_type(int(leave_type_id))
        if not lt or lt.organization_id != actor.organization_id:
            raise NotFoundError("Leave type not found")
        return lt

    @staticmethod
    def _locked_balance(repos: Repositories, lt: LeaveType, *, user_id: int, year: int) -> LeaveBalance:
        repos.leave.ensure_balance(user_id=user_id, leave_type_id=lt.leave_type_id, year=year, entitled=lt.default_days)
        balance = repos.leave.get_balance(user_id=user_id, leave_type_id=lt.leave_type_id, year=year, for_update=True)
        if balance is None:
            raise NotFoundError("Leave balance not found")
        return balance

    @staticmethod
    def _request_in_org(repos: Repositories, actor: Session, request_id: int):
        req = repos.leave.get_request(int(request_id), for_update=True)
        if not req:
            raise NotFoundError("Leave request not found")
        requester = repos.users.get_by_id(req.user_id)
        if not requester or requester.organization_id != actor.organization_id:
            raise NotFoundError("Leave request not found")
        return req, requester

    # ---- commands ------------------------------------------------------

    def apply_for_leave(
        self,
        actor: Session,
        *,
        leave_type_id: int,
        start_date: date,
        end_date: date,
        half_day: bool = False,
        reason: Optional[str] = None,
    ) -> LeaveRequest:
        if actor.organization_id is None:
            raise ValidationError("Join an organization before applying for leave")
        days = requested_days(start_date, end_date, half_day=half_day)
        reason = (reason or "").strip() or None

        with self._uow() as repos:
            lt = self._leave_type_in_org(repos, actor, leave_type_id)
            balance = self._locked_balance(repos, lt, user_id=actor.user_id, year=start_date.year)

            if repos.leave.has_overlapping_request(user_id=actor.user_id, start_date=start_date, end_date=end_date):
                raise ConflictError("You already have a leave request covering these dates")
            if balance.available < days:
                raise InsufficientBalance(days, balance.available)

            request_id = repos.leave.create_request(
                user_id=actor.user_id,
                leave_type_id=lt.leave_type_id,
                start_date=start_date,
                end_date=end_date,
                half_day=half_day,
                days=days,
                reason=reason,
            )
            repos.leave.save_balance(balance.reserve(days))
            created = repos.leave.get_request(request_id)

        logger.info("User %s applied for %s day(s) of %s (request %s)", actor.user_id, days, lt.name, request_id)
        return created

    def decide(
        self,
        actor: Session,
        *,
        request_id: int,
        outcome: LeaveStatus,
        reason: Optional[str] = None,
    ) -> LeaveRequest:
        if outcome not in (LeaveStatus.APPROVED, LeaveStatus.REJECTED):
            raise ValidationError("Outcome must be APPROVED or REJECTED")
        require_minimum_role(actor.role, Role.TEAM_LEAD)
        reason = (reason or "").strip() or None
        if outcome == LeaveStatus.REJECTED:
            reason = require_non_empty(reason, "Rejection reason")

        with self._uow() as repos:
            req, requester = self._request_in_org(repos, actor, request_id)
            # Nobody outranks the top role: its members decide their own requests, audited.
            top_role = requester.role == roles_in_order()[0]
            if not top_role and req.user_id == actor.user_id:
                raise AuthorizationError("You cannot decide your own leave request")
            if not _may_decide(actor, req.user_id, requester.role):
                raise AuthorizationError("You cannot manage a user with an equal or higher role")
            if req.status != LeaveStatus.PENDING:
                raise AlreadyDecided()

            lt = repos.leave.get_leave_type(req.leave_type_id)
            balance = self._locked_balance(repos, lt, user_id=req.user_id, year=req.year)
            if outcome == LeaveStatus.APPROVED:
                balance = balance.consume(req.days)
            else:
                balance = balance.release(req.days)

            decided = replace(
                req,
                status=outcome,
                approver_id=actor.user_id,
                decided_at=self._clock(),
                rejection_reason=reason if outcome == LeaveStatus.REJECTED else None,
            )
            repos.leave.update_request(decided)
            repos.leave.save_balance(balance)
            if top_role:
                audit(
                    repos,
                    actor_id=actor.user_id,
                    action="LEAVE_TOP_ROLE_DECISION",
                    entity="LeaveRequest",
                    entity_id=req.request_id,
                    changes={
                        "outcome": outcome.value,
                        "requesterId": req.user_id,
                        "selfDecided": req.user_id == actor.user_id,
                        "reason": reason,
                    },
                )

            verb = "approved" if outcome == LeaveStatus.APPROVED else "rejected"
            message = f"Your {lt.name} leave from {req.start_date.isoformat()} to {req.end_date.isoformat()} was {verb}"
            if reason and outcome == LeaveStatus.REJECTED:
                message += f": {reason}"
            notify(
                repos,
                [
                    NewNotification(
                        user_id=req.user_id,
                        type=NotificationType.LEAVE,
                        title=f"Leave request {verb}",
                        message=message,
                        action_url="/leave",
                    )
                ],
            )

        logger.info("Leave request %s %s by user %s", req.request_id, verb, actor.user_id)
        return decided

    def approve(self, actor: Session, *, request_id: int) -> LeaveRequest:
        return self.decide(actor, request_id=request_id, outcome=LeaveStatus.APPROVED)

    def reject(self, actor: Session, *, request_id: int, reason: Optional[str]) -> LeaveRequest:
        return self.decide(actor, request_id=request_id, outcome=LeaveStatus.REJECTED, reason=reason)

    def cancel(self, actor: Session, *, request_id: int) -> LeaveRequest:
        with self._uow() as repos:
            req = repos.leave.get_request(int(request_id), for_update=True)
            if not req or req.user_id != actor.user_id:
                raise NotFoundError("Leave request not found")
            if req.status != LeaveStatus.PENDING:
                raise AlreadyDecided("Only pending requests can be cancelled")

            lt = repos.leave.get_leave_type(req.leave_type_id)
            balance = self._locked_balance(repos, lt, user_id=req.user_id, year=req.year)
            cancelled = replace(req, status=LeaveStatus.CANCELLED, decided_at=self._clock())
            repos.leave.update_request(cancelled)
            repos.leave.save_balance(balance.release(req.days))

        logger.info("Leave request %s cancelled by its requester", req.request_id)
        return cancelled

    def revoke(self, actor: Session, *, request_id: int, reason: Optional[str]) -> LeaveRequest:
        """Administrative cancellation of an approved request; the days go back."""
        require_minimum_role(actor.role, Role.HR_ADMIN)
        reason = require_non_empty(reason, "Reason")

        with self._uow() as repos:
            req, requester = self._request_in_org(repos, actor, request_id)
            require_can_manage(actor.role, requester.role)
            if req.status != LeaveStatus.APPROVED:
                raise ConflictError("Only approved requests can be revoked")

            lt = repos.leave.get_leave_type(req.leave_type_id)
            balance = self._locked_balance(repos, lt, user_id=req.user_id, year=req.year)
            revoked = replace(
                req,
                status=LeaveStatus.CANCELLED,
                approver_id=actor.user_id,
                decided_at=self._clock(),
                rejection_reason=reason,
            )
            repos.leave.update_request(revoked)
            repos.leave.save_balance(balance.restore(req.days))
            audit(
                repos,
                actor_id=actor.user_id,
                action="LEAVE_REVOKED",
                entity="LeaveRequest",
                entity_id=req.request_id,
                changes={"from": req.status.value, "to": LeaveStatus.CANCELLED.value, "days": str(req.days), "reason": reason},
            )
            notify(
                repos,
                [
                    NewNotification(
                        user_id=req.user_id,
                        type=NotificationType.LEAVE,
                        title="Approved leave revoked",
                        message=f"Your {lt.name} leave from {req.start_date.isoformat()} was revoked: {reason}",
                        action_url="/leave",
                    )
                ],
            )

        logger.warning("Approved leave request %s revoked by user %s", req.request_id, actor.user_id)
        return revoked

    def roll_over_year(self, actor: Session, *, organization_id: int, from_year: int) -> int:
        """Open ``from_year + 1`` balances carrying unused days forward.

        Running it again overwrites the carried-over amount instead of adding
        to it. A rerun that would leave days already booked in the new year
        uncovered is refused as a whole. Returns the number of balances written.
        """
        require_minimum_role(actor.role, Role.HR_ADMIN)
        if int(organization_id) != actor.organization_id:
            raise AuthorizationError("You can only roll over your own organization")
        from_year = int(from_year)
        to_year = from_year + 1

        written = 0
        with self._uow() as repos:
            types = {lt.leave_type_id: lt for lt in repos.leave.list_leave_types(actor.organization_id)}
            for old in repos.leave.list_balances_for_year(
                organization_id=actor.organization_id, year=from_year, for_update=True
            ):
                lt = types.get(old.leave_type_id)
                if lt is None:
                    continue
                carried = lt.carry_over_from(old.available)
                nxt = self._locked_balance(repos, lt, user_id=old.user_id, year=to_year)
                if nxt.available - nxt.carried_over + carried < 0:
                    raise ConflictError(
                        f"User {old.user_id} already booked {lt.name} in {to_year} against the previous carry-over"
                    )
                repos.leave.save_balance(nxt.carry(carried))
                written += 1

            audit(
                repos,
                actor_id=actor.user_id,
                action="LEAVE_ROLLOVER",
                entity="Organization",
                entity_id=actor.organization_id,
                changes={"fromYear": from_year, "toYear": to_year, "balances": written},
            )

        logger.info("Rolled over %s leave balance(s) from %s to %s", written, from_year, to_year)
        return written

    # ---- queries -------------------------------------------------------

    def list_leave_types(self, actor: Session) -> Sequence[LeaveType]:
        if actor.organization_id is None:
            return []
        with self._uow() as repos:
            return repos.leave.list_leave_types(actor.organization_id)

    def list_balances(self, actor: Session, *, year: Optional[int] = None) -> Sequence[LeaveBalance]:
        """Balances of every leave type for ``year``, opening missing ones."""
        if actor.organization_id is None:
            return []
        year = int(year or self._clock().year)
        with self._uow() as repos:
            for lt in repos.leave.list_leave_types(actor.organization_id):
                repos.leave.ensure_balance(
                    user_id=actor.user_id, leave_type_id=lt.leave_type_id, year=year, entitled=lt.default_days
                )
            return repos.leave.list_balances(user_id=actor.user_id, year=year)

    def list_requests(
        self,
        actor: Session,
        *,
        user_id: Optional[int] = None,
        status: Optional[LeaveStatus] = None,
    ) -> Sequence[dict]:
        if actor.organization_id is None:
            return []
        if not has_minimum_role(actor.role, Role.TEAM_LEAD):
            user_id = actor.user_id
        with self._uow() as repos:
            rows = repos.leave.list_requests(organization_id=actor.organization_id, user_id=user_id, status=status)
        return [r for r in rows if r["userId"] == actor.user_id or can_manage(actor.role, Role(r["userRole"]))]

    def list_pending_for_approval(self, actor: Session) -> Sequence[dict]:
        """Pending requests the actor is allowed to decide."""
        require_minimum_role(actor.role, Role.TEAM_LEAD)
        with self._uow() as repos:
            rows = repos.leave.list_requests(organization_id=actor.organization_id, status=LeaveStatus.PENDING)
        return [r for r in rows if _may_decide(actor, r["userId"], Role(r["userRole"]))]

