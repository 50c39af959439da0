from dataclasses import replace
from datetime import date
from decimal import Decimal

import pytest

from src.workhub.workhub.core.enums import LeaveStatus, NotificationType
from src.workhub.workhub.core.exceptions import (
    AlreadyDecided,
    AuthorizationError,
    ConflictError,
    InsufficientBalance,
    NotFoundError,
    ValidationError,
)
from src.workhub.workhub.leave.service import requested_days


def _balance(uow, user_id, leave_type_id, year=2026):
    return uow.repositories().leave.get_balance(user_id=user_id, leave_type_id=leave_type_id, year=year)


@pytest.fixture
def casual(org):
    return org.leave_types["Casual Leave"]


@pytest.fixture
def seeded_balance(uow, org, casual):
    """Employee's casual leave: 12 entitled, 4 used, 1 pending -> 7 available."""
    repo = uow.repositories().leave
    repo.ensure_balance(user_id=org.employee, leave_type_id=casual, year=2026, entitled=Decimal("12"))
    b = _balance(uow, org.employee, casual)
    repo.save_balance(replace(b, used=Decimal("4"), pending=Decimal("1")))
    assert _balance(uow, org.employee, casual).available == Decimal("7")


def _apply(services, as_user, user_id, leave_type_id, start, end, **kw):
    return services.leave_ledger.apply_for_leave(
        as_user(user_id), leave_type_id=leave_type_id, start_date=start, end_date=end, **kw
    )


def test_apply_then_approve_moves_days_from_pending_to_used(services, org, uow, as_user, casual, seeded_balance):
    req = _apply(services, as_user, org.employee, casual, date(2026, 4, 6), date(2026, 4, 8), reason="Trip")

    assert req.status == LeaveStatus.PENDING
    assert req.days == Decimal("3")
    b = _balance(uow, org.employee, casual)
    assert (b.pending, b.available) == (Decimal("4"), Decimal("4"))

    decided = services.leave_ledger.approve(as_user(org.lead), request_id=req.request_id)

    assert decided.status == LeaveStatus.APPROVED
    assert decided.approver_id == org.lead
    b = _balance(uow, org.employee, casual)
    assert (b.used, b.pending, b.available) == (Decimal("7"), Decimal("1"), Decimal("4"))

    notes = uow.repositories().notifications.list_for_user(org.employee)
    assert notes[0].type == NotificationType.LEAVE
    assert notes[0].action_url == "/leave"


def test_insufficient_balance_leaves_balance_unchanged(services, org, uow, as_user, casual, seeded_balance):
    before = _balance(uow, org.employee, casual)

    with pytest.raises(InsufficientBalance):
        _apply(services, as_user, org.employee, casual, date(2026, 5, 4), date(2026, 5, 11))

    assert _balance(uow, org.employee, casual) == before
    assert uow.store.requests == {}


def test_balance_is_opened_lazily_from_the_leave_type(services, org, uow, as_user, casual):
    assert _balance(uow, org.employee, casual) is None

    _apply(services, as_user, org.employee, casual, date(2026, 3, 16), date(2026, 3, 16))

    b = _balance(uow, org.employee, casual)
    assert (b.entitled, b.pending) == (Decimal("12"), Decimal("1"))


def test_unpaid_leave_defaults_to_zero_days(services, org, as_user):
    with pytest.raises(InsufficientBalance):
        _apply(services, as_user, org.employee, org.leave_types["Unpaid Leave"], date(2026, 3, 16), date(2026, 3, 16))


def test_second_decision_is_refused(services, org, as_user, casual):
    req = _apply(services, as_user, org.employee, casual, date(2026, 4, 6), date(2026, 4, 6))
    services.leave_ledger.approve(as_user(org.lead), request_id=req.request_id)

    with pytest.raises(AlreadyDecided):
        services.leave_ledger.reject(as_user(org.hr), request_id=req.request_id, reason="Too late")


def test_reject_needs_a_reason_and_releases_the_days(services, org, uow, as_user, casual):
    req = _apply(services, as_user, org.employee, casual, date(2026, 4, 6), date(2026, 4, 7))

    with pytest.raises(ValidationError):
        services.leave_ledger.reject(as_user(org.lead), request_id=req.request_id, reason="  ")

    rejected = services.leave_ledger.reject(as_user(org.lead), request_id=req.request_id, reason="Release week")
    assert rejected.status == LeaveStatus.REJECTED
    assert rejected.rejection_reason == "Release week"
    b = _balance(uow, org.employee, casual)
    assert (b.pending, b.available) == (Decimal("0"), Decimal("12"))


def test_approver_rules(services, org, uow, as_user, casual):
    own = _apply(services, as_user, org.lead, casual, date(2026, 4, 6), date(2026, 4, 6))
    peer = _apply(services, as_user, org.employee, casual, date(2026, 4, 6), date(2026, 4, 6))

    with pytest.raises(AuthorizationError):
        services.leave_ledger.approve(as_user(org.lead), request_id=own.request_id)
    with pytest.raises(AuthorizationError):
        services.leave_ledger.approve(as_user(org.colleague), request_id=peer.request_id)
    with pytest.raises(NotFoundError):
        services.leave_ledger.approve(as_user(org.lead), request_id=9999)

    assert services.leave_ledger.approve(as_user(org.hr), request_id=own.request_id).status == LeaveStatus.APPROVED


def test_founder_decides_own_request_with_an_audit_entry(services, org, uow, as_user, casual):
    req = _apply(services, as_user, org.admin, casual, date(2026, 4, 6), date(2026, 4, 7))

    with pytest.raises(AuthorizationError):
        services.leave_ledger.approve(as_user(org.hr), request_id=req.request_id)
    assert [r["id"] for r in services.leave_ledger.list_pending_for_approval(as_user(org.admin))] == [
        req.request_id
    ]

    decided = services.leave_ledger.approve(as_user(org.admin), request_id=req.request_id)

    assert decided.status == LeaveStatus.APPROVED
    assert decided.approver_id == org.admin
    assert _balance(uow, org.admin, casual).used == Decimal("2")
    entry = uow.repositories().audit.list_for_entity(entity="LeaveRequest", entity_id=req.request_id)[0]
    assert entry.action == "LEAVE_TOP_ROLE_DECISION"
    assert entry.changes["selfDecided"] is True


def test_cancel_by_requester_only_while_pending(services, org, uow, as_user, casual):
    req = _apply(services, as_user, org.employee, casual, date(2026, 4, 6), date(2026, 4, 8))

    with pytest.raises(NotFoundError):
        services.leave_ledger.cancel(as_user(org.colleague), request_id=req.request_id)

    cancelled = services.leave_ledger.cancel(as_user(org.employee), request_id=req.request_id)
    assert cancelled.status == LeaveStatus.CANCELLED
    assert _balance(uow, org.employee, casual).available == Decimal("12")

    with pytest.raises(AlreadyDecided):
        services.leave_ledger.cancel(as_user(org.employee), request_id=req.request_id)


def test_revoke_restores_used_days_and_is_audited(services, org, uow, as_user, casual):
    req = _apply(services, as_user, org.employee, casual, date(2026, 4, 6), date(2026, 4, 8))

    with pytest.raises(ConflictError):
        services.leave_ledger.revoke(as_user(org.hr), request_id=req.request_id, reason="Mistake")

    services.leave_ledger.approve(as_user(org.lead), request_id=req.request_id)
    with pytest.raises(AuthorizationError):
        services.leave_ledger.revoke(as_user(org.lead), request_id=req.request_id, reason="Mistake")

    revoked = services.leave_ledger.revoke(as_user(org.hr), request_id=req.request_id, reason="Project deadline")

    assert revoked.status == LeaveStatus.CANCELLED
    b = _balance(uow, org.employee, casual)
    assert (b.used, b.pending, b.available) == (Decimal("0"), Decimal("0"), Decimal("12"))
    entry = uow.repositories().audit.list_for_entity(entity="LeaveRequest", entity_id=req.request_id)[0]
    assert entry.action == "LEAVE_REVOKED"
    assert entry.changes["reason"] == "Project deadline"


def test_overlapping_requests_conflict(services, org, as_user, casual):
    _apply(services, as_user, org.employee, casual, date(2026, 4, 6), date(2026, 4, 8))

    with pytest.raises(ConflictError):
        _apply(services, as_user, org.employee, org.leave_types["Sick Leave"], date(2026, 4, 8), date(2026, 4, 9))


def test_half_day_counts_half(services, org, uow, as_user, casual):
    req = _apply(services, as_user, org.employee, casual, date(2026, 4, 6), date(2026, 4, 6), half_day=True)

    assert req.days == Decimal("0.5")
    assert _balance(uow, org.employee, casual).available == Decimal("11.5")


@pytest.mark.parametrize(
    "start,end,half_day",
    [
        (date(2026, 4, 8), date(2026, 4, 6), False),
        (date(2026, 12, 30), date(2027, 1, 2), False),
        (date(2026, 4, 6), date(2026, 4, 7), True),
    ],
)
def test_requested_days_rejects_bad_ranges(start, end, half_day):
    with pytest.raises(ValidationError):
        requested_days(start, end, half_day=half_day)


def test_rollover_carries_capped_days_and_is_idempotent(services, org, uow, as_user):
    earned = org.leave_types["Earned Leave"]
    casual = org.leave_types["Casual Leave"]
    _apply(services, as_user, org.employee, earned, date(2026, 4, 6), date(2026, 4, 10))
    _apply(services, as_user, org.employee, casual, date(2026, 5, 4), date(2026, 5, 4))

    admin = as_user(org.hr)
    first = services.leave_ledger.roll_over_year(admin, organization_id=org.id, from_year=2026)
    second = services.leave_ledger.roll_over_year(admin, organization_id=org.id, from_year=2026)

    assert first == second == 2
    nxt = _balance(uow, org.employee, earned, year=2027)
    assert nxt.carried_over == Decimal("10")
    assert nxt.available == Decimal("25")
    assert _balance(uow, org.employee, casual, year=2027).carried_over == Decimal("0")
    assert uow.repositories().audit.actions().count("LEAVE_ROLLOVER") == 2


def test_rollover_rerun_cannot_strand_days_booked_in_the_new_year(services, org, uow, as_user):
    earned = org.leave_types["Earned Leave"]
    admin = as_user(org.hr)
    _apply(services, as_user, org.employee, earned, date(2026, 4, 6), date(2026, 4, 6))
    services.leave_ledger.roll_over_year(admin, organization_id=org.id, from_year=2026)
    assert _balance(uow, org.employee, earned, year=2027).available == Decimal("29")

    _apply(services, as_user, org.employee, earned, date(2027, 1, 4), date(2027, 2, 1))
    _apply(services, as_user, org.employee, earned, date(2026, 6, 1), date(2026, 6, 10))

    with pytest.raises(ConflictError):
        services.leave_ledger.roll_over_year(admin, organization_id=org.id, from_year=2026)

    nxt = _balance(uow, org.employee, earned, year=2027)
    assert nxt.carried_over == Decimal("14")
    assert nxt.pending == Decimal("29")
    assert nxt.available == Decimal("0")
    assert uow.repositories().audit.actions().count("LEAVE_ROLLOVER") == 1


def test_rollover_requires_hr_admin_of_the_same_org(services, org, as_user):
    with pytest.raises(AuthorizationError):
        services.leave_ledger.roll_over_year(as_user(org.lead), organization_id=org.id, from_year=2026)
    with pytest.raises(AuthorizationError):
        services.leave_ledger.roll_over_year(as_user(org.hr), organization_id=org.id + 1000, from_year=2026)


def test_request_listing_is_scoped_by_role(services, org, as_user, casual):
    _apply(services, as_user, org.employee, casual, date(2026, 4, 6), date(2026, 4, 6))
    _apply(services, as_user, org.colleague, casual, date(2026, 4, 6), date(2026, 4, 6))
    _apply(services, as_user, org.lead, casual, date(2026, 4, 6), date(2026, 4, 6))

    own = services.leave_ledger.list_requests(as_user(org.employee), user_id=org.colleague)
    assert {r["userId"] for r in own} == {org.employee}

    lead_view = services.leave_ledger.list_requests(as_user(org.lead))
    assert {r["userId"] for r in lead_view} == {org.employee, org.colleague, org.lead}

    pending = services.leave_ledger.list_pending_for_approval(as_user(org.lead))
    assert {r["userId"] for r in pending} == {org.employee, org.colleague}
    assert {r["userRole"] for r in pending} == {"EMPLOYEE"}


def test_list_balances_opens_every_type(services, org, as_user):
    balances = services.leave_ledger.list_balances(as_user(org.employee))

    assert len(balances) == 4
    assert {b.year for b in balances} == {2026}
