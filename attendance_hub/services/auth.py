"""
Authentication: credential checks and the authenticated-caller context.

Every service call receives a CallerContext explicitly instead of reading
identity from ambient session state.
"""
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict

from attendance_hub.core import security
from attendance_hub.core.exceptions import AccessDeniedError, AppException, AuthenticationError, NotFoundError
from attendance_hub.models.user import User, UserRole
from attendance_hub.services.base import BaseService

APPROVER_ROLES = (UserRole.ADMIN, UserRole.MANAGER)


class CallerContext(BaseModel):
    """Identity and role of an already-authenticated caller."""
    model_config = ConfigDict(frozen=True)

    user_id: int
    username: str
    role: UserRole

    @classmethod
    def from_user(cls, user: User) -> "CallerContext":
        return cls(user_id=user.id, username=user.username, role=user.role)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def can_approve(self) -> bool:
        return self.role in APPROVER_ROLES

    def require_admin(self):
        if not self.is_admin:
            raise AccessDeniedError("Administrator role required")

    def require_approver(self):
        if not self.can_approve:
            raise AccessDeniedError("Approval authority required (admin or manager)")

    def require_self_or_admin(self, user_id: int):
        if not self.is_admin and self.user_id != user_id:
            raise AccessDeniedError("You can only access your own account")


class AuthService(BaseService):

    def authenticate(self, username: str, password: str) -> User:
        user = self.db.query(User).filter(User.username == username).first()
        if not user or not security.verify_password(password, user.hashed_password):
            self.log_warning("Login failed", username=username)
            raise AuthenticationError("Incorrect username or password")
        return user

    def issue_token(self, user: User) -> str:
        return security.create_access_token(data={
            "sub": user.username,
            "user_id": user.id,
            "role": user.role.value,
        })

    def login(self, username: str, password: str) -> Dict[str, Any]:
        user = self.authenticate(username, password)
        self.log_info("User logged in", user_id=user.id)
        return {
            "access_token": self.issue_token(user),
            "token_type": "bearer",
            "user": {
                "id": user.id,
                "username": user.username,
                "name": user.name,
                "role": user.role.value,
            },
        }

    def caller_from_token(self, token: str) -> CallerContext:
        payload = security.decode_access_token(token)
        if payload is None:
            raise AuthenticationError()
        if payload.get("error") == "TOKEN_EXPIRED":
            raise AuthenticationError("TOKEN_EXPIRED")
        if payload.get("type") != "access" or payload.get("user_id") is None:
            raise AuthenticationError("Invalid token type")

        # Role is re-read from the database so demotions take effect immediately
        user = self.db.get(User, payload["user_id"])
        if user is None or user.username != payload.get("sub"):
            raise AuthenticationError("User not found")
        return CallerContext.from_user(user)

    def change_password(self, caller: CallerContext, old_password: str, new_password: str):
        user = self.db.get(User, caller.user_id)
        if user is None:
            raise NotFoundError("User", caller.user_id)
        if not security.verify_password(old_password, user.hashed_password):
            raise AppException("Incorrect current password", status_code=400, error_code="INVALID_PASSWORD")
        user.hashed_password = security.get_password_hash(new_password)
        self.commit()
        self.log_info("Password changed", user_id=user.id)
