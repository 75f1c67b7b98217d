from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from attendance_hub.database import get_db
from attendance_hub.models.user import UserRole
from attendance_hub.routers.auth_deps import require_role
from attendance_hub.schemas.audit import AuditLogResponse
from attendance_hub.services.audit import AuditService

router = APIRouter(
    prefix="/admin",
    tags=["admin"],
    dependencies=[Depends(require_role([UserRole.ADMIN]))]
)

@router.get("/audit-logs", response_model=List[AuditLogResponse])
def get_audit_logs(
    db: Session = Depends(get_db),
    entity_type: Optional[str] = Query(None, description="Filter by entity type (e.g. 'leave_request')"),
    action: Optional[str] = Query(None, description="Filter by action name"),
    user_id: Optional[int] = Query(None, description="Filter by acting user ID"),
    limit: int = Query(100, ge=1, le=500),
    skip: int = Query(0, ge=0)
):
    """
    Get audit logs. READ-ONLY.
    """
    return AuditService(db).list_logs(entity_type, action, user_id, limit, skip)
