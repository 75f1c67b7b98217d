from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from attendance_hub.core.limiter import LOGIN_RATE_LIMIT, limiter
from attendance_hub.database import get_db
from attendance_hub.routers.auth_deps import get_current_caller
from attendance_hub.schemas.auth import LoginRequest, PasswordChange, Token, UserResponse
from attendance_hub.services.auth import AuthService, CallerContext
from attendance_hub.services.users import UserService

router = APIRouter(
    prefix="/auth",
    tags=["auth"]
)

@router.post("/login", response_model=Token)
@limiter.limit(LOGIN_RATE_LIMIT)
def login(request: Request, login_data: LoginRequest, db: Session = Depends(get_db)):
    # JSON body rather than form-data for frontend compatibility
    return AuthService(db).login(login_data.username, login_data.password)

@router.get("/me", response_model=UserResponse)
def get_me(caller: CallerContext = Depends(get_current_caller), db: Session = Depends(get_db)):
    return UserService(db).get_user(caller, caller.user_id)

@router.post("/change-password")
def change_password(
    data: PasswordChange,
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(get_current_caller)
):
    """Securely update current user's password."""
    AuthService(db).change_password(caller, data.old_password, data.new_password)
    return {"success": True, "message": "Password updated successfully"}
