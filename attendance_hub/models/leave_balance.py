from sqlalchemy import Column, Integer, Float, ForeignKey, DateTime, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from attendance_hub.database import Base
from attendance_hub.models.leave_request import LeaveType

# Leave type -> balance column. OTHER draws from no bucket.
BUCKET_COLUMNS = {
    LeaveType.ANNUAL.value: "annual_leave",
    LeaveType.SICK.value: "sick_leave",
    LeaveType.PERSONAL.value: "personal_leave",
}

class LeaveBalance(Base):
    __tablename__ = "leave_balances"
    __table_args__ = (UniqueConstraint("user_id", "year", name="uq_leave_balance_user_year"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    year = Column(Integer, nullable=False)
    annual_leave = Column(Float, default=0.0, nullable=False)
    sick_leave = Column(Float, default=0.0, nullable=False)
    personal_leave = Column(Float, default=0.0, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="leave_balances")

    def available(self, leave_type: str):
        """Remaining days in the bucket for leave_type, or None if it has no bucket."""
        column = BUCKET_COLUMNS.get(leave_type)
        return getattr(self, column) if column else None

    @property
    def user_name(self):
        return self.user.name if self.user else None

    @property
    def user_department(self):
        return self.user.department if self.user else None

    @property
    def user_position(self):
        return self.user.position if self.user else None
