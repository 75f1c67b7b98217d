"""
RBAC Dependencies.
Resolve the bearer token into a CallerContext and gate endpoints by role.
"""
import logging
from typing import Callable, List

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from attendance_hub.core.exceptions import AuthenticationError
from attendance_hub.database import get_db
from attendance_hub.models.user import UserRole
from attendance_hub.services.auth import AuthService, CallerContext

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")


def get_current_caller(token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)) -> CallerContext:
    """
    Extracts and validates the current caller from the JWT token.
    """
    try:
        return AuthService(db).caller_from_token(token)
    except AuthenticationError as e:
        logger.warning(f"Authentication failed: {e.message}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=e.message,
            headers={"WWW-Authenticate": "Bearer"},
        )


def require_role(allowed_roles: List[UserRole]) -> Callable:
    """
    Dependency factory that checks if the caller has one of the allowed roles.

    Usage:
        @router.get("/admin-only")
        def admin_endpoint(caller: CallerContext = Depends(require_role([UserRole.ADMIN]))):
            ...
    """
    def role_checker(caller: CallerContext = Depends(get_current_caller)) -> CallerContext:
        if caller.role not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Required roles: {[r.value for r in allowed_roles]}"
            )
        return caller
    return role_checker


def require_approver():
    """Shorthand for roles holding approval authority."""
    return require_role([UserRole.ADMIN, UserRole.MANAGER])


def require_admin():
    """Shorthand for requiring the admin role."""
    return require_role([UserRole.ADMIN])
