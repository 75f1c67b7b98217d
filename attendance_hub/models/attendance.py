from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from attendance_hub.database import Base

class AttendanceRecord(Base):
    __tablename__ = "attendance_records"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    check_in_time = Column(DateTime, nullable=False, index=True)
    check_out_time = Column(DateTime, nullable=True)
    check_in_location = Column(String(255), nullable=True)
    check_out_location = Column(String(255), nullable=True)
    status = Column(String(20), default="normal")
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("User", back_populates="attendance_records")

    @property
    def user_name(self):
        return self.user.name if self.user else None

    @property
    def user_department(self):
        return self.user.department if self.user else None
