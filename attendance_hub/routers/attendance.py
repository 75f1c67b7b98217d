from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from attendance_hub.database import get_db
from attendance_hub.routers.auth_deps import get_current_caller, require_admin
from attendance_hub.schemas.attendance import (
    AttendanceRecordResponse,
    LocationPayload,
    TodayStatusResponse,
)
from attendance_hub.services.attendance import AttendanceService
from attendance_hub.services.auth import CallerContext

router = APIRouter(
    prefix="/attendance",
    tags=["attendance"]
)

@router.post("/check-in", response_model=AttendanceRecordResponse)
def check_in(
    payload: Optional[LocationPayload] = None,
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(get_current_caller)
):
    return AttendanceService(db).check_in(caller, payload.location if payload else None)

@router.post("/check-out", response_model=AttendanceRecordResponse)
def check_out(
    payload: Optional[LocationPayload] = None,
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(get_current_caller)
):
    return AttendanceService(db).check_out(caller, payload.location if payload else None)

@router.get("/today", response_model=TodayStatusResponse)
def today_status(
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(get_current_caller)
):
    return AttendanceService(db).today_status(caller)

@router.get("/my", response_model=List[AttendanceRecordResponse])
def my_attendance(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(get_current_caller)
):
    return AttendanceService(db).my_records(caller, start_date, end_date)

@router.get("", response_model=List[AttendanceRecordResponse])
def all_attendance(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(require_admin())
):
    return AttendanceService(db).all_records(caller, start_date, end_date)
