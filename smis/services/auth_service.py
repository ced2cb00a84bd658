# smis/services/auth_service.py
"""Login, registration and password reset for staff users and students."""
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Tuple, Union
import logging

from fastapi import Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .activity_service import ActivityService
from .email_service import EmailService
from ..core.config import settings
from ..core.exceptions import AuthenticationError, ValidationError
from ..core.security import (
    create_user_token,
    generate_reset_token,
    get_password_hash,
    verify_password,
)
from ..models.student import Student
from ..models.user import User
from ..utils.constants import MIN_PASSWORD_LENGTH, UserRole, UserType

logger = logging.getLogger(__name__)

RESET_REQUEST_MESSAGE = "If an account with that email exists, a password reset link has been sent"


class AuthService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.activity = ActivityService(db)

    async def _find_account(self, email: str) -> Tuple[Optional[Union[User, Student]], Optional[str]]:
        """Staff users are checked before students"""
        normalized = email.strip().lower()
        result = await self.db.execute(
            select(User).where(User.email == normalized, User.is_deleted == False)
        )
        user = result.scalar_one_or_none()
        if user:
            return user, UserType.STAFF.value

        result = await self.db.execute(
            select(Student).where(Student.email == normalized, Student.is_deleted == False)
        )
        student = result.scalar_one_or_none()
        if student:
            return student, UserType.STUDENT.value
        return None, None

    async def email_taken(self, email: str, exclude_staff_id: Optional[int] = None,
                          exclude_student_id: Optional[int] = None) -> bool:
        normalized = email.strip().lower()
        user_stmt = select(User.id).where(User.email == normalized)
        if exclude_staff_id:
            user_stmt = user_stmt.where(User.id != exclude_staff_id)
        student_stmt = select(Student.id).where(Student.email == normalized)
        if exclude_student_id:
            student_stmt = student_stmt.where(Student.id != exclude_student_id)

        if (await self.db.execute(user_stmt)).first():
            return True
        return (await self.db.execute(student_stmt)).first() is not None

    async def register(self, data: Dict[str, Any]) -> User:
        if await self.email_taken(data["email"]):
            raise ValidationError("User already exists", field="email")

        user = User(
            first_name=data["first_name"],
            last_name=data["last_name"],
            email=data["email"].strip().lower(),
            password_hash=get_password_hash(data["password"]),
            role=UserRole(data["role"]).value,
            department_id=data.get("department_id"),
            phone=data.get("phone"),
            subjects=[],
            is_active=True,
        )
        self.db.add(user)
        await self.db.commit()
        await self.db.refresh(user)
        logger.info(f"Registered {user.role} user {user.id}")
        return user

    async def login(self, email: Optional[str], password: Optional[str], request: Optional[Request] = None) -> Dict[str, Any]:
        if not email or not password:
            raise ValidationError("Email and password are required")

        account, user_type = await self._find_account(email)
        if account is None or not verify_password(password, account.password_hash):
            logger.info(f"Failed login attempt for {email}")
            raise AuthenticationError("Invalid credentials")
        if not account.is_active:
            raise AuthenticationError("Account is deactivated")

        account.last_login = datetime.now(timezone.utc)
        await self.db.commit()

        token = create_user_token(account.id, account.role, user_type, account.email)
        await self.activity.log_activity(
            user_id=account.id,
            actor_type=user_type,
            action="login",
            entity_type="auth",
            entity_id=account.id,
            description=f"{account.full_name} logged in",
            request=request,
        )
        return {
            "token": token,
            "token_type": "bearer",
            "expires_in": settings.access_token_expire_minutes * 60,
            "user": {
                "id": account.id,
                "email": account.email,
                "first_name": account.first_name,
                "last_name": account.last_name,
                "role": account.role,
                "user_type": user_type,
                "department_id": account.department_id,
            },
        }

    async def request_password_reset(self, email: str) -> Optional[str]:
        """Store a reset token for the account; returns it, or None for unknown emails"""
        if not email:
            raise ValidationError("Email is required")

        account, _ = await self._find_account(email)
        if account is None:
            logger.info("Password reset requested for unknown email")
            return None

        token = generate_reset_token()
        account.reset_token = token
        # Naive UTC, compared against utcnow() on reset
        account.reset_token_expiry = datetime.utcnow() + timedelta(minutes=settings.password_reset_expire_minutes)
        await self.db.commit()
        return token

    async def send_reset_email(self, email: str, token: str):
        await EmailService().send_password_reset(email, token)

    async def reset_password(self, token: Optional[str], new_password: Optional[str]):
        if not token or not new_password:
            raise ValidationError("Token and new password are required")
        if len(new_password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")

        now = datetime.utcnow()
        account = None
        for model in (User, Student):
            result = await self.db.execute(
                select(model).where(
                    model.reset_token == token,
                    model.reset_token_expiry > now,
                    model.is_deleted == False,
                )
            )
            account = result.scalar_one_or_none()
            if account:
                break

        if account is None:
            raise ValidationError("Invalid or expired reset token")

        account.password_hash = get_password_hash(new_password)
        account.reset_token = None
        account.reset_token_expiry = None
        await self.db.commit()
        logger.info(f"Password reset completed for {account.email}")
