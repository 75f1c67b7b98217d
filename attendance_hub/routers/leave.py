from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from attendance_hub.database import get_db
from attendance_hub.models.leave_request import LeaveStatus
from attendance_hub.routers.auth_deps import get_current_caller, require_approver
from attendance_hub.schemas.leave import (
    LeaveDecisionRequest,
    LeaveRequestCreate,
    LeaveRequestResponse,
)
from attendance_hub.services.auth import CallerContext
from attendance_hub.services.leave_accounting import LeaveAccountingService

router = APIRouter(
    prefix="/leave-requests",
    tags=["leave"]
)

@router.post("", response_model=LeaveRequestResponse, status_code=201)
def submit_leave_request(
    payload: LeaveRequestCreate,
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(get_current_caller)
):
    return LeaveAccountingService(db).submit_request(
        caller,
        leave_type=payload.leave_type,
        start_date=payload.start_date,
        end_date=payload.end_date,
        reason=payload.reason,
    )

@router.get("/my", response_model=List[LeaveRequestResponse])
def list_my_leave_requests(
    status: Optional[LeaveStatus] = Query(None),
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(get_current_caller)
):
    return LeaveAccountingService(db).list_my_requests(caller, status.value if status else None)

@router.get("", response_model=List[LeaveRequestResponse])
def list_leave_requests(
    status: Optional[LeaveStatus] = Query(None),
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(require_approver())
):
    return LeaveAccountingService(db).list_requests(caller, status.value if status else None)

@router.put("/{request_id}/approve", response_model=LeaveRequestResponse)
def decide_leave_request(
    request_id: int,
    decision: LeaveDecisionRequest,
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(require_approver())
):
    return LeaveAccountingService(db).decide(caller, request_id, decision.status, decision.remark)
