# smis/core/dependencies.py
"""Authentication and authorization dependencies."""
from dataclasses import dataclass
from typing import Optional, Union
import logging

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .database import get_db
from .exceptions import AuthenticationError, PermissionDeniedError
from .security import decode_token
from ..models.user import User
from ..models.student import Student
from ..utils.constants import UserRole, UserType

logger = logging.getLogger(__name__)

# auto_error is off so a missing header is reported as 401 instead of 403
bearer_scheme = HTTPBearer(auto_error=False)


@dataclass
class CurrentUser:
    account: Union[User, Student]
    user_type: str

    @property
    def id(self) -> int:
        return self.account.id

    @property
    def role(self) -> str:
        return self.account.role

    @property
    def email(self) -> str:
        return self.account.email

    @property
    def department_id(self) -> Optional[int]:
        return self.account.department_id

    @property
    def is_student(self) -> bool:
        return self.user_type == UserType.STUDENT.value


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> CurrentUser:
    """Resolve the bearer token to an active staff user or student"""
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("No token provided")

    payload = decode_token(credentials.credentials)
    try:
        record_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise AuthenticationError("Invalid token payload")

    user_type = payload.get("user_type", UserType.STAFF.value)
    model = Student if user_type == UserType.STUDENT.value else User

    result = await db.execute(
        select(model).where(model.id == record_id, model.is_deleted == False)
    )
    account = result.scalar_one_or_none()
    if account is None:
        raise AuthenticationError("User not found")
    if not account.is_active:
        raise AuthenticationError("Account is deactivated")

    return CurrentUser(account=account, user_type=user_type)


def require_roles(*roles: UserRole):
    """Dependency factory allowing only the given roles"""
    allowed = {role.value if isinstance(role, UserRole) else role for role in roles}

    async def checker(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if current_user.role not in allowed:
            logger.warning(
                f"Role {current_user.role} denied, requires one of {sorted(allowed)}"
            )
            raise PermissionDeniedError("Access denied. Insufficient permissions")
        return current_user

    return checker


async def get_hod_department(
    current_user: CurrentUser = Depends(require_roles(UserRole.HOD)),
) -> int:
    """Department managed by the calling HOD"""
    if not current_user.department_id:
        raise PermissionDeniedError("HOD is not assigned to any department")
    return current_user.department_id
