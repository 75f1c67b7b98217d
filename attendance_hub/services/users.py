from datetime import date
from typing import List

from sqlalchemy.exc import IntegrityError

from attendance_hub.core import security
from attendance_hub.core.exceptions import ConflictError, NotFoundError
from attendance_hub.models.user import User
from attendance_hub.schemas.auth import UserCreate, UserUpdate
from attendance_hub.services.audit import AuditService
from attendance_hub.services.auth import CallerContext
from attendance_hub.services.base import BaseService
from attendance_hub.services.leave_accounting import LeaveAccountingService


class UserService(BaseService):
    """Account administration."""

    def list_users(self, caller: CallerContext) -> List[User]:
        caller.require_admin()
        return self.db.query(User).order_by(User.created_at.desc(), User.id.desc()).all()

    def get_user(self, caller: CallerContext, user_id: int) -> User:
        caller.require_self_or_admin(user_id)
        user = self.db.get(User, user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        return user

    def create_user(self, caller: CallerContext, data: UserCreate) -> User:
        caller.require_admin()
        if self.db.query(User).filter(User.username == data.username).first():
            raise ConflictError("Username already exists", details={"username": data.username})

        user = User(
            username=data.username,
            hashed_password=security.get_password_hash(data.password),
            name=data.name,
            email=data.email,
            phone=data.phone,
            role=data.role,
            department=data.department,
            position=data.position,
        )
        self.db.add(user)
        try:
            self.db.flush()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError("Username already exists", details={"username": data.username})

        AuditService(self.db).log_action(
            action="create_user",
            entity_type="user",
            entity_id=user.id,
            user_id=caller.user_id,
            user_role=caller.role,
            details={"username": user.username, "role": user.role},
        )
        self.commit()
        self.db.refresh(user)

        # New accounts start the current year with default allotments
        LeaveAccountingService(self.db).ensure_balance(user.id, date.today().year)
        self.log_info("User created", user_id=user.id)
        return user

    def update_user(self, caller: CallerContext, user_id: int, data: UserUpdate) -> User:
        user = self.get_user(caller, user_id)
        # Empty strings leave the stored value untouched
        for field, value in data.model_dump(exclude_unset=True).items():
            if value:
                setattr(user, field, value)
        self.commit()
        self.db.refresh(user)
        return user

    def delete_user(self, caller: CallerContext, user_id: int):
        caller.require_admin()
        user = self.db.get(User, user_id)
        if user is None:
            raise NotFoundError("User", user_id)

        AuditService(self.db).log_action(
            action="delete_user",
            entity_type="user",
            entity_id=user.id,
            user_id=caller.user_id,
            user_role=caller.role,
            details={"username": user.username},
        )
        self.db.delete(user)
        self.commit()
        self.log_info("User deleted", user_id=user_id)
