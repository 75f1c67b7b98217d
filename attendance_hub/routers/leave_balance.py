from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from attendance_hub.database import get_db
from attendance_hub.routers.auth_deps import get_current_caller, require_admin
from attendance_hub.schemas.leave import (
    LeaveBalanceResponse,
    LeaveBalanceUpdate,
    YearInitializationRequest,
    YearInitializationResponse,
)
from attendance_hub.services.auth import CallerContext
from attendance_hub.services.leave_accounting import LeaveAccountingService

router = APIRouter(
    prefix="/leave-balances",
    tags=["leave-balances"]
)

@router.get("/my", response_model=LeaveBalanceResponse)
def get_my_balance(
    year: Optional[int] = Query(None, ge=1900, le=9999),
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(get_current_caller)
):
    return LeaveAccountingService(db).get_my_balance(caller, year)

@router.get("", response_model=List[LeaveBalanceResponse])
def list_balances(
    year: Optional[int] = Query(None, ge=1900, le=9999),
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(require_admin())
):
    return LeaveAccountingService(db).list_balances(caller, year)

@router.put("", response_model=LeaveBalanceResponse)
def adjust_balance(
    payload: LeaveBalanceUpdate,
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(require_admin())
):
    return LeaveAccountingService(db).adjust_balance(
        caller,
        user_id=payload.user_id,
        year=payload.year,
        annual_leave=payload.annual_leave,
        sick_leave=payload.sick_leave,
        personal_leave=payload.personal_leave,
    )

@router.post("/initialize", response_model=YearInitializationResponse)
def initialize_year(
    payload: YearInitializationRequest,
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(require_admin())
):
    """Year-start initialisation: default allotments for every user lacking a balance."""
    created = LeaveAccountingService(db).initialize_year(caller, payload.year)
    return {"year": payload.year, "created": created}
