# Models package
# Importing modules here ensures they are registered with SQLAlchemy Base
from . import user, leave_request, leave_balance, attendance, audit_log

# Explicit class exports for cleaner imports
from .user import User, UserRole
from .leave_request import LeaveRequest, LeaveStatus, LeaveType
from .leave_balance import LeaveBalance
from .attendance import AttendanceRecord
from .audit_log import AuditLog

__all__ = [
    "User",
    "UserRole",
    "LeaveRequest",
    "LeaveStatus",
    "LeaveType",
    "LeaveBalance",
    "AttendanceRecord",
    "AuditLog",
]
