from sqlalchemy import Column, Integer, String, DateTime, JSON
from sqlalchemy.sql import func
from attendance_hub.database import Base

class AuditLog(Base):
    """Append-only trail of state-changing actions."""
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    action = Column(String(100), index=True, nullable=False)
    entity_type = Column(String(50), index=True, nullable=False)
    entity_id = Column(Integer, nullable=True)
    user_id = Column(Integer, index=True, nullable=True)
    user_role = Column(String(20), nullable=True)
    details = Column(JSON, nullable=True)
    before_state = Column(JSON, nullable=True)
    after_state = Column(JSON, nullable=True)
    timestamp = Column(DateTime(timezone=True), server_default=func.now(), index=True)
