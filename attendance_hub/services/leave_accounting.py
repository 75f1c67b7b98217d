"""
Leave request lifecycle and balance accounting.

Requests are created ``pending`` and decided exactly once. Balances are only
deducted at approval time, inside the same transaction that moves the
request out of ``pending``. Both writes are conditional UPDATEs
(``... WHERE status = 'pending'`` and ``... WHERE bucket >= days``), so two
approvals racing on one balance row cannot both succeed and a bucket can
never go negative.
"""
import math
from datetime import date, datetime, timezone
from typing import List, Optional, Union

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from attendance_hub.core.config import LeaveAllotments, settings
from attendance_hub.core.exceptions import (
    InsufficientBalanceError,
    InvalidDateRangeError,
    InvalidValueError,
    NotFoundError,
    NotPendingError,
)
from attendance_hub.models.leave_balance import BUCKET_COLUMNS, LeaveBalance
from attendance_hub.models.leave_request import LeaveRequest, LeaveStatus, LeaveType
from attendance_hub.models.user import User
from attendance_hub.services.audit import AuditService
from attendance_hub.services.auth import CallerContext
from attendance_hub.services.base import BaseService

DECISIONS = (LeaveStatus.APPROVED.value, LeaveStatus.REJECTED.value)


def count_leave_days(start_date: date, end_date: date) -> float:
    """Inclusive day count: 2024-01-01..2024-01-03 is 3 days."""
    if end_date < start_date:
        raise InvalidDateRangeError(start_date, end_date)
    return float((end_date - start_date).days + 1)


def _normalize_leave_type(leave_type: Union[str, LeaveType]) -> str:
    try:
        return LeaveType(leave_type).value
    except ValueError:
        raise InvalidValueError(
            f"Unknown leave type: {leave_type}",
            details={"allowed": [t.value for t in LeaveType]},
        )


def _validate_allotment(field: str, value: float):
    # Half-day steps; value * 2 is inf for huge inputs and fails is_integer()
    if value is None or not math.isfinite(value) or value < 0 or not float(value * 2).is_integer():
        raise InvalidValueError(
            f"{field} must be a non-negative multiple of 0.5",
            details={"field": field, "value": value if value is not None and math.isfinite(value) else str(value)},
        )


class LeaveAccountingService(BaseService):

    def __init__(self, db: Session, allotments: Optional[LeaveAllotments] = None):
        super().__init__(db)
        self.allotments = allotments or settings.leave_allotments
        self.audit = AuditService(db)

    # ------------------------------------------------------------------
    # Balances
    # ------------------------------------------------------------------
    def _get_balance(self, user_id: int, year: int, for_update: bool = False) -> Optional[LeaveBalance]:
        query = self.db.query(LeaveBalance).filter(
            LeaveBalance.user_id == user_id,
            LeaveBalance.year == year,
        )
        if for_update:
            query = query.with_for_update().populate_existing()
        return query.first()

    def ensure_balance(self, user_id: int, year: int) -> LeaveBalance:
        """Return the (user, year) balance, creating it with default allotments if absent."""
        balance = self._get_balance(user_id, year)
        if balance is not None:
            return balance

        balance = LeaveBalance(user_id=user_id, year=year, **self.allotments.model_dump())
        self.db.add(balance)
        try:
            self.db.commit()
        except IntegrityError:
            # Another transaction created the row first
            self.db.rollback()
            balance = self._get_balance(user_id, year)
            if balance is None:
                raise
            return balance
        self.log_info("Initialised leave balance", user_id=user_id, year=year)
        return balance

    def initialize_year(self, caller: CallerContext, year: int) -> int:
        """Create default balances for every user without one for `year`. Returns rows created."""
        caller.require_admin()
        try:
            created = self._create_missing_balances(caller, year)
        except IntegrityError:
            # A row was created concurrently (e.g. by ensure_balance); recount against committed data
            self.db.rollback()
            created = self._create_missing_balances(caller, year)
        self.log_info(f"Initialised {created} leave balances for {year}", year=year)
        return created

    def _users_missing_balance(self, year: int) -> List[int]:
        existing = {
            row.user_id
            for row in self.db.query(LeaveBalance.user_id).filter(LeaveBalance.year == year)
        }
        return [
            user_id
            for (user_id,) in self.db.query(User.id).order_by(User.id).all()
            if user_id not in existing
        ]

    def _create_missing_balances(self, caller: CallerContext, year: int) -> int:
        user_ids = self._users_missing_balance(year)
        for user_id in user_ids:
            self.db.add(LeaveBalance(user_id=user_id, year=year, **self.allotments.model_dump()))

        self.audit.log_action(
            action="initialize_leave_year",
            entity_type="leave_balance",
            entity_id=None,
            user_id=caller.user_id,
            user_role=caller.role,
            details={"year": year, "created": len(user_ids)},
        )
        self.commit()
        return len(user_ids)

    def get_my_balance(self, caller: CallerContext, year: Optional[int] = None) -> LeaveBalance:
        return self.ensure_balance(caller.user_id, year or date.today().year)

    def list_balances(self, caller: CallerContext, year: Optional[int] = None) -> List[LeaveBalance]:
        caller.require_admin()
        return (
            self.db.query(LeaveBalance)
            .join(User, LeaveBalance.user_id == User.id)
            .options(joinedload(LeaveBalance.user))
            .filter(LeaveBalance.year == (year or date.today().year))
            .order_by(User.department, User.name)
            .all()
        )

    def adjust_balance(
        self,
        caller: CallerContext,
        user_id: int,
        year: int,
        annual_leave: float,
        sick_leave: float,
        personal_leave: float,
    ) -> LeaveBalance:
        """Administrative override of all three buckets for (user, year)."""
        caller.require_admin()
        values = {
            "annual_leave": annual_leave,
            "sick_leave": sick_leave,
            "personal_leave": personal_leave,
        }
        for field, value in values.items():
            _validate_allotment(field, value)

        if self.db.get(User, user_id) is None:
            raise NotFoundError("User", user_id)

        balance = self._get_balance(user_id, year, for_update=True)
        before = None
        if balance is None:
            balance = LeaveBalance(user_id=user_id, year=year, **values)
            self.db.add(balance)
        else:
            before = {field: getattr(balance, field) for field in values}
            for field, value in values.items():
                setattr(balance, field, value)
        self.db.flush()

        self.audit.log_action(
            action="adjust_leave_balance",
            entity_type="leave_balance",
            entity_id=balance.id,
            user_id=caller.user_id,
            user_role=caller.role,
            details={"target_user_id": user_id, "year": year},
            before_state=before,
            after_state=values,
        )
        self.commit()
        self.db.refresh(balance)
        self.log_info("Leave balance adjusted", target_user_id=user_id, year=year)
        return balance

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------
    def submit_request(
        self,
        caller: CallerContext,
        leave_type: Union[str, LeaveType],
        start_date: date,
        end_date: date,
        reason: str,
    ) -> LeaveRequest:
        leave_type = _normalize_leave_type(leave_type)
        days = count_leave_days(start_date, end_date)

        # Requests are charged to the year they start in
        balance = self.ensure_balance(caller.user_id, start_date.year)
        available = balance.available(leave_type)
        if available is not None and days > available:
            self.log_warning(
                "Leave request refused: insufficient balance",
                user_id=caller.user_id, leave_type=leave_type, days=days, available=available,
            )
            raise InsufficientBalanceError(leave_type, days, available)

        leave = LeaveRequest(
            user_id=caller.user_id,
            leave_type=leave_type,
            start_date=start_date,
            end_date=end_date,
            days=days,
            reason=reason,
            status=LeaveStatus.PENDING.value,
        )
        self.db.add(leave)
        self.commit()
        self.db.refresh(leave)
        self.log_info("Leave request submitted", request_id=leave.id, user_id=caller.user_id, days=days)
        return leave

    def get_request(self, request_id: int, for_update: bool = False) -> LeaveRequest:
        query = self.db.query(LeaveRequest).filter(LeaveRequest.id == request_id)
        if for_update:
            query = query.with_for_update().populate_existing()
        leave = query.first()
        if leave is None:
            raise NotFoundError("Leave request", request_id)
        return leave

    def list_my_requests(self, caller: CallerContext, status: Optional[str] = None) -> List[LeaveRequest]:
        query = self.db.query(LeaveRequest).filter(LeaveRequest.user_id == caller.user_id)
        if status:
            query = query.filter(LeaveRequest.status == status)
        return query.order_by(LeaveRequest.created_at.desc(), LeaveRequest.id.desc()).all()

    def list_requests(self, caller: CallerContext, status: Optional[str] = None) -> List[LeaveRequest]:
        caller.require_approver()
        query = self.db.query(LeaveRequest).options(joinedload(LeaveRequest.user))
        if status:
            query = query.filter(LeaveRequest.status == status)
        return query.order_by(LeaveRequest.created_at.desc(), LeaveRequest.id.desc()).all()

    def decide(
        self,
        caller: CallerContext,
        request_id: int,
        decision: str,
        remark: Optional[str] = None,
    ) -> LeaveRequest:
        """
        Move a pending request to approved or rejected.

        Approval deducts ``days`` from the matching bucket of the year the
        request starts in. If the bucket no longer covers the request the
        decision is aborted with InsufficientBalanceError and the request
        stays pending.
        """
        caller.require_approver()
        if decision not in DECISIONS:
            raise InvalidValueError(f"Decision must be one of {list(DECISIONS)}", details={"decision": decision})

        leave = self.get_request(request_id, for_update=True)
        if leave.status != LeaveStatus.PENDING.value:
            raise NotPendingError(leave.id, leave.status)

        before = {"status": leave.status, "approver_id": leave.approver_id}
        bucket = BUCKET_COLUMNS.get(leave.leave_type)
        year = leave.start_date.year
        days = leave.days

        try:
            if decision == LeaveStatus.APPROVED.value and bucket:
                self._deduct(leave.user_id, year, leave.leave_type, bucket, days)

            now = datetime.now(timezone.utc)
            result = self.db.execute(
                update(LeaveRequest)
                .where(
                    LeaveRequest.id == leave.id,
                    LeaveRequest.status == LeaveStatus.PENDING.value,
                )
                .values(
                    status=decision,
                    approver_id=caller.user_id,
                    remark=remark,
                    decided_at=now,
                    updated_at=now,
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                # Decided concurrently; undo the deduction made above
                self.db.rollback()
                current = self.get_request(request_id)
                raise NotPendingError(current.id, current.status)

            self.audit.log_action(
                action=f"{'approve' if decision == LeaveStatus.APPROVED.value else 'reject'}_leave",
                entity_type="leave_request",
                entity_id=leave.id,
                user_id=caller.user_id,
                user_role=caller.role,
                details={
                    "employee_id": leave.user_id,
                    "leave_type": leave.leave_type,
                    "days": days,
                    "year": year,
                    "remark": remark,
                },
                before_state=before,
                after_state={"status": decision, "approver_id": caller.user_id},
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(leave)
        self.log_info(
            f"Leave request {leave.id} {decision}",
            request_id=leave.id, approver_id=caller.user_id, days=days,
        )
        return leave

    def _deduct(self, user_id: int, year: int, leave_type: str, bucket: str, days: float):
        """Atomic deduct-if-sufficient on one balance row. Must run inside the decision transaction."""
        balance = self._get_balance(user_id, year, for_update=True)
        if balance is None:
            raise NotFoundError("Leave balance", f"user={user_id} year={year}")

        column = getattr(LeaveBalance, bucket)
        result = self.db.execute(
            update(LeaveBalance)
            .where(LeaveBalance.id == balance.id, column >= days)
            .values({bucket: column - days})
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            self.db.rollback()
            current = self._get_balance(user_id, year)
            available = getattr(current, bucket) if current is not None else 0.0
            self.log_warning(
                "Leave approval refused: insufficient balance",
                user_id=user_id, leave_type=leave_type, days=days, available=available,
            )
            raise InsufficientBalanceError(leave_type, days, available)
