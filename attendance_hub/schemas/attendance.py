from pydantic import BaseModel, ConfigDict
from datetime import datetime
from typing import Optional

class LocationPayload(BaseModel):
    location: Optional[str] = None

class AttendanceRecordResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    user_name: Optional[str] = None
    user_department: Optional[str] = None
    check_in_time: datetime
    check_out_time: Optional[datetime] = None
    check_in_location: Optional[str] = None
    check_out_location: Optional[str] = None
    status: Optional[str] = None

class TodayStatusResponse(BaseModel):
    checked_in: bool
    checked_out: bool = False
    record: Optional[AttendanceRecordResponse] = None
