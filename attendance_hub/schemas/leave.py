from pydantic import BaseModel, ConfigDict, Field
from datetime import date, datetime
from typing import Literal, Optional

from attendance_hub.models.leave_request import LeaveType

class LeaveRequestCreate(BaseModel):
    # Any client-sent "days" is ignored; the count is derived from the dates.
    model_config = ConfigDict(extra="ignore")

    leave_type: LeaveType
    start_date: date
    end_date: date
    reason: str = Field(min_length=1)

class LeaveRequestResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    user_name: Optional[str] = None
    user_department: Optional[str] = None
    leave_type: str
    start_date: date
    end_date: date
    days: float
    reason: Optional[str] = None
    status: str
    approver_id: Optional[int] = None
    approver_name: Optional[str] = None
    remark: Optional[str] = None
    decided_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

class LeaveDecisionRequest(BaseModel):
    status: Literal["approved", "rejected"]
    remark: Optional[str] = None

class LeaveBalanceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    year: int
    annual_leave: float
    sick_leave: float
    personal_leave: float
    user_name: Optional[str] = None
    user_department: Optional[str] = None
    user_position: Optional[str] = None

class LeaveBalanceUpdate(BaseModel):
    # Sign and half-day granularity are enforced by the service so that
    # callers get a single INVALID_VALUE error shape.
    user_id: int
    year: int = Field(ge=1900, le=9999)
    annual_leave: float
    sick_leave: float
    personal_leave: float

class YearInitializationRequest(BaseModel):
    year: int = Field(ge=1900, le=9999)

class YearInitializationResponse(BaseModel):
    year: int
    created: int
