from datetime import date

import pytest
from attendance_hub.core.config import LeaveAllotments
from attendance_hub.core.exceptions import (
    AccessDeniedError,
    InsufficientBalanceError,
    InvalidDateRangeError,
    InvalidValueError,
    NotFoundError,
    NotPendingError,
)
from attendance_hub.models.audit_log import AuditLog
from attendance_hub.models.leave_balance import LeaveBalance
from attendance_hub.models.leave_request import LeaveRequest, LeaveStatus
from attendance_hub.services.audit import AuditService
from attendance_hub.services.leave_accounting import LeaveAccountingService

YEAR = 2024


@pytest.fixture
def service(db_session):
    return LeaveAccountingService(
        db_session,
        allotments=LeaveAllotments(annual_leave=10, sick_leave=10, personal_leave=5),
    )


def _balance(db_session, user, year=YEAR):
    db_session.expire_all()
    return db_session.query(LeaveBalance).filter_by(user_id=user.id, year=year).one()


def _submit(service, caller, leave_type="annual", start=date(YEAR, 3, 4), end=date(YEAR, 3, 6)):
    return service.submit_request(caller, leave_type, start, end, "family trip")


def test_full_approval_lifecycle(service, db_session, employee_user, manager_user, caller_for):
    """balance 10 -> submit 3 (still 10) -> approve (7) -> approve again (NotPending, 7)."""
    employee = caller_for(employee_user)
    manager = caller_for(manager_user)

    leave = _submit(service, employee)
    assert leave.status == LeaveStatus.PENDING.value
    assert leave.days == 3
    assert _balance(db_session, employee_user).annual_leave == 10

    decided = service.decide(manager, leave.id, "approved", remark="enjoy")
    assert decided.status == LeaveStatus.APPROVED.value
    assert decided.approver_id == manager_user.id
    assert decided.remark == "enjoy"
    assert decided.decided_at is not None
    assert _balance(db_session, employee_user).annual_leave == 7

    with pytest.raises(NotPendingError):
        service.decide(manager, leave.id, "approved")
    assert _balance(db_session, employee_user).annual_leave == 7
    assert db_session.get(LeaveRequest, leave.id).status == LeaveStatus.APPROVED.value


def test_submission_over_balance_is_refused(service, db_session, employee_user, caller_for):
    employee = caller_for(employee_user)
    with pytest.raises(InsufficientBalanceError) as exc:
        _submit(service, employee, "personal", date(YEAR, 5, 1), date(YEAR, 5, 6))
    assert exc.value.details == {"leave_type": "personal", "requested": 6.0, "available": 5.0}

    assert _balance(db_session, employee_user).personal_leave == 5
    assert db_session.query(LeaveRequest).count() == 0


def test_submission_rejects_reversed_dates(service, db_session, employee_user, caller_for):
    with pytest.raises(InvalidDateRangeError):
        _submit(service, caller_for(employee_user), start=date(YEAR, 3, 6), end=date(YEAR, 3, 4))
    assert db_session.query(LeaveRequest).count() == 0


def test_submission_rejects_unknown_leave_type(service, employee_user, caller_for):
    with pytest.raises(InvalidValueError):
        _submit(service, caller_for(employee_user), leave_type="sabbatical")


def test_submission_lazily_creates_default_balance(service, db_session, employee_user, caller_for):
    assert db_session.query(LeaveBalance).count() == 0
    _submit(service, caller_for(employee_user), "sick")
    balance = _balance(db_session, employee_user)
    assert (balance.annual_leave, balance.sick_leave, balance.personal_leave) == (10, 10, 5)


def test_request_is_charged_to_the_year_it_starts_in(service, db_session, employee_user, manager_user, caller_for):
    leave = _submit(service, caller_for(employee_user), "annual", date(2024, 12, 30), date(2025, 1, 2))
    assert leave.days == 4
    service.decide(caller_for(manager_user), leave.id, "approved")

    assert _balance(db_session, employee_user, 2024).annual_leave == 6
    assert db_session.query(LeaveBalance).filter_by(user_id=employee_user.id, year=2025).count() == 0


def test_rejection_does_not_touch_balance(service, db_session, employee_user, manager_user, caller_for):
    leave = _submit(service, caller_for(employee_user))
    decided = service.decide(caller_for(manager_user), leave.id, "rejected", remark="team offsite")

    assert decided.status == LeaveStatus.REJECTED.value
    assert decided.remark == "team offsite"
    assert _balance(db_session, employee_user).annual_leave == 10

    with pytest.raises(NotPendingError):
        service.decide(caller_for(manager_user), leave.id, "approved")
    assert _balance(db_session, employee_user).annual_leave == 10


def test_other_leave_has_no_bucket(service, db_session, employee_user, manager_user, caller_for):
    # Longer than any bucket, still accepted and approved without deduction
    leave = _submit(service, caller_for(employee_user), "other", date(YEAR, 6, 1), date(YEAR, 6, 20))
    service.decide(caller_for(manager_user), leave.id, "approved")

    balance = _balance(db_session, employee_user)
    assert (balance.annual_leave, balance.sick_leave, balance.personal_leave) == (10, 10, 5)


def test_approval_revalidates_balance(service, db_session, employee_user, manager_user, caller_for):
    """Two requests fit individually but not together; the second approval is aborted."""
    employee = caller_for(employee_user)
    manager = caller_for(manager_user)
    first = _submit(service, employee, "annual", date(YEAR, 4, 1), date(YEAR, 4, 6))
    second = _submit(service, employee, "annual", date(YEAR, 5, 1), date(YEAR, 5, 6))

    service.decide(manager, first.id, "approved")
    with pytest.raises(InsufficientBalanceError):
        service.decide(manager, second.id, "approved")

    assert _balance(db_session, employee_user).annual_leave == 4
    assert db_session.get(LeaveRequest, second.id).status == LeaveStatus.PENDING.value

    # Still decidable afterwards
    service.decide(manager, second.id, "rejected")
    assert db_session.get(LeaveRequest, second.id).status == LeaveStatus.REJECTED.value


def test_employee_cannot_decide(service, db_session, employee_user, caller_for):
    leave = _submit(service, caller_for(employee_user))
    with pytest.raises(AccessDeniedError):
        service.decide(caller_for(employee_user), leave.id, "approved")
    assert db_session.get(LeaveRequest, leave.id).status == LeaveStatus.PENDING.value


def test_decide_unknown_request(service, manager_user, caller_for):
    with pytest.raises(NotFoundError):
        service.decide(caller_for(manager_user), 999, "approved")


def test_decide_rejects_unknown_decision(service, employee_user, manager_user, caller_for):
    leave = _submit(service, caller_for(employee_user))
    with pytest.raises(InvalidValueError):
        service.decide(caller_for(manager_user), leave.id, "pending")


def test_decision_is_audited(service, db_session, employee_user, manager_user, caller_for):
    leave = _submit(service, caller_for(employee_user))
    service.decide(caller_for(manager_user), leave.id, "approved", remark="ok")

    log = db_session.query(AuditLog).filter_by(action="approve_leave").one()
    assert log.entity_id == leave.id
    assert log.user_id == manager_user.id
    assert log.before_state["status"] == "pending"
    assert log.after_state["status"] == "approved"


def test_adjust_balance_overwrites_buckets(service, db_session, admin_user, employee_user, caller_for):
    service.ensure_balance(employee_user.id, YEAR)
    balance = service.adjust_balance(caller_for(admin_user), employee_user.id, YEAR, 12.5, 8, 0)
    assert (balance.annual_leave, balance.sick_leave, balance.personal_leave) == (12.5, 8, 0)


def test_adjust_balance_creates_missing_row(service, db_session, admin_user, employee_user, caller_for):
    service.adjust_balance(caller_for(admin_user), employee_user.id, 2030, 1, 2, 3)
    assert _balance(db_session, employee_user, 2030).personal_leave == 3


@pytest.mark.parametrize("bad", [-1, -0.5, 1.25, float("nan"), float("inf"), 1e308])
def test_adjust_balance_rejects_invalid_values(service, db_session, admin_user, employee_user, caller_for, bad):
    service.ensure_balance(employee_user.id, YEAR)
    with pytest.raises(InvalidValueError):
        service.adjust_balance(caller_for(admin_user), employee_user.id, YEAR, 10, bad, 5)
    balance = _balance(db_session, employee_user)
    assert (balance.annual_leave, balance.sick_leave, balance.personal_leave) == (10, 10, 5)


def test_adjust_balance_requires_admin(service, manager_user, employee_user, caller_for):
    with pytest.raises(AccessDeniedError):
        service.adjust_balance(caller_for(manager_user), employee_user.id, YEAR, 1, 1, 1)


def test_adjust_balance_unknown_user(service, admin_user, caller_for):
    with pytest.raises(NotFoundError):
        service.adjust_balance(caller_for(admin_user), 4242, YEAR, 1, 1, 1)


def test_initialize_year_is_idempotent(service, db_session, admin_user, employee_user, manager_user, caller_for):
    admin = caller_for(admin_user)
    service.adjust_balance(admin, employee_user.id, 2026, 1, 1, 1)

    assert service.initialize_year(admin, 2026) == 2
    assert service.initialize_year(admin, 2026) == 0

    # Existing rows are left alone
    assert _balance(db_session, employee_user, 2026).annual_leave == 1
    assert _balance(db_session, manager_user, 2026).annual_leave == 10


def test_list_requests_requires_approval_authority(service, employee_user, manager_user, caller_for):
    employee = caller_for(employee_user)
    _submit(service, employee)
    with pytest.raises(AccessDeniedError):
        service.list_requests(employee)
    assert len(service.list_requests(caller_for(manager_user))) == 1


def test_list_my_requests_filters_by_status(service, employee_user, manager_user, caller_for):
    employee = caller_for(employee_user)
    first = _submit(service, employee)
    second = _submit(service, employee, "sick", date(YEAR, 7, 1), date(YEAR, 7, 1))
    service.decide(caller_for(manager_user), first.id, "rejected")

    assert [r.id for r in service.list_my_requests(employee)] == [second.id, first.id]
    assert [r.id for r in service.list_my_requests(employee, "pending")] == [second.id]
    assert service.list_my_requests(caller_for(manager_user)) == []


def test_failed_decision_rolls_back_deduction(service, db_session, monkeypatch, employee_user, manager_user, caller_for):
    """A failure after the deduction must not leave the balance charged while the request is pending."""
    leave = _submit(service, caller_for(employee_user))

    def fail_audit(self, *args, **kwargs):
        raise RuntimeError("audit store unavailable")

    monkeypatch.setattr(AuditService, "log_action", fail_audit)
    with pytest.raises(RuntimeError):
        service.decide(caller_for(manager_user), leave.id, "approved")

    assert _balance(db_session, employee_user).annual_leave == 10
    assert db_session.get(LeaveRequest, leave.id).status == LeaveStatus.PENDING.value
    assert db_session.get(LeaveRequest, leave.id).approver_id is None


def test_initialize_year_survives_concurrent_balance_creation(service, db_session, admin_user, employee_user, manager_user, caller_for):
    """A balance created between the scan and the insert is skipped on retry."""
    scan = service._users_missing_balance
    calls = []

    def scan_then_race(year):
        user_ids = scan(year)
        if not calls:
            # Another request lazily creates Alice's row after the scan
            service.ensure_balance(employee_user.id, year)
        calls.append(year)
        return user_ids

    service._users_missing_balance = scan_then_race

    assert service.initialize_year(caller_for(admin_user), 2027) == 2
    assert len(calls) == 2
    assert db_session.query(LeaveBalance).filter_by(year=2027).count() == 3
    assert db_session.query(AuditLog).filter_by(action="initialize_leave_year").count() == 1
