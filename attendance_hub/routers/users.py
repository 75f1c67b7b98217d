from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from attendance_hub.database import get_db
from attendance_hub.routers.auth_deps import get_current_caller, require_admin
from attendance_hub.schemas.auth import UserCreate, UserResponse, UserUpdate
from attendance_hub.services.auth import CallerContext
from attendance_hub.services.users import UserService

router = APIRouter(
    prefix="/users",
    tags=["users"]
)

@router.get("", response_model=List[UserResponse])
def list_users(db: Session = Depends(get_db), caller: CallerContext = Depends(require_admin())):
    return UserService(db).list_users(caller)

@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    payload: UserCreate,
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(require_admin())
):
    return UserService(db).create_user(caller, payload)

@router.get("/{user_id}", response_model=UserResponse)
def get_user(user_id: int, db: Session = Depends(get_db), caller: CallerContext = Depends(get_current_caller)):
    return UserService(db).get_user(caller, user_id)

@router.put("/{user_id}", response_model=UserResponse)
def update_user(
    user_id: int,
    payload: UserUpdate,
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(get_current_caller)
):
    return UserService(db).update_user(caller, user_id, payload)

@router.delete("/{user_id}")
def delete_user(user_id: int, db: Session = Depends(get_db), caller: CallerContext = Depends(require_admin())):
    UserService(db).delete_user(caller, user_id)
    return {"message": "User deleted"}
