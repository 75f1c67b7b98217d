from datetime import date, datetime, time, timedelta
from typing import Callable, List, Optional, Tuple

from sqlalchemy.orm import Session, joinedload

from attendance_hub.core.exceptions import ConflictError, InvalidDateRangeError
from attendance_hub.models.attendance import AttendanceRecord
from attendance_hub.services.auth import CallerContext
from attendance_hub.services.base import BaseService

# Default history window when no range is given
DEFAULT_HISTORY_DAYS = 30


def _day_bounds(day: date) -> Tuple[datetime, datetime]:
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


class AttendanceService(BaseService):
    """Daily check-in/check-out clock. Independent of leave balances."""

    def __init__(self, db: Session, clock: Callable[[], datetime] = datetime.now):
        super().__init__(db)
        self.clock = clock

    def _record_for_day(self, user_id: int, day: date) -> Optional[AttendanceRecord]:
        start, end = _day_bounds(day)
        return self.db.query(AttendanceRecord).filter(
            AttendanceRecord.user_id == user_id,
            AttendanceRecord.check_in_time >= start,
            AttendanceRecord.check_in_time < end,
        ).first()

    def check_in(self, caller: CallerContext, location: Optional[str] = None) -> AttendanceRecord:
        now = self.clock()
        if self._record_for_day(caller.user_id, now.date()) is not None:
            raise ConflictError("Already checked in today")

        record = AttendanceRecord(
            user_id=caller.user_id,
            check_in_time=now,
            check_in_location=location,
            status="normal",
        )
        self.db.add(record)
        self.commit()
        self.db.refresh(record)
        self.log_info("Checked in", user_id=caller.user_id, record_id=record.id)
        return record

    def check_out(self, caller: CallerContext, location: Optional[str] = None) -> AttendanceRecord:
        now = self.clock()
        record = self._record_for_day(caller.user_id, now.date())
        if record is None:
            raise ConflictError("Not checked in today")
        if record.check_out_time is not None:
            raise ConflictError("Already checked out today")

        record.check_out_time = now
        record.check_out_location = location
        self.commit()
        self.db.refresh(record)
        self.log_info("Checked out", user_id=caller.user_id, record_id=record.id)
        return record

    def today_status(self, caller: CallerContext) -> dict:
        record = self._record_for_day(caller.user_id, self.clock().date())
        if record is None:
            return {"checked_in": False, "checked_out": False, "record": None}
        return {
            "checked_in": True,
            "checked_out": record.check_out_time is not None,
            "record": record,
        }

    def _range(self, start_date: Optional[date], end_date: Optional[date]) -> Tuple[datetime, datetime]:
        end_date = end_date or self.clock().date()
        start_date = start_date or end_date - timedelta(days=DEFAULT_HISTORY_DAYS)
        if end_date < start_date:
            raise InvalidDateRangeError(start_date, end_date)
        return _day_bounds(start_date)[0], _day_bounds(end_date)[1]

    def my_records(self, caller: CallerContext, start_date: Optional[date] = None,
                   end_date: Optional[date] = None) -> List[AttendanceRecord]:
        start, end = self._range(start_date, end_date)
        return self.db.query(AttendanceRecord).filter(
            AttendanceRecord.user_id == caller.user_id,
            AttendanceRecord.check_in_time >= start,
            AttendanceRecord.check_in_time < end,
        ).order_by(AttendanceRecord.check_in_time.desc()).all()

    def all_records(self, caller: CallerContext, start_date: Optional[date] = None,
                    end_date: Optional[date] = None) -> List[AttendanceRecord]:
        caller.require_admin()
        start, end = self._range(start_date, end_date)
        return self.db.query(AttendanceRecord).options(
            joinedload(AttendanceRecord.user)
        ).filter(
            AttendanceRecord.check_in_time >= start,
            AttendanceRecord.check_in_time < end,
        ).order_by(AttendanceRecord.check_in_time.desc()).all()
