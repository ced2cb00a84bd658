# smis/schemas/auth_schemas.py
"""Pydantic schemas for login, registration and password reset."""
from typing import Optional
from pydantic import BaseModel, EmailStr, Field

from ..utils.constants import UserRole, MIN_PASSWORD_LENGTH


class LoginRequest(BaseModel):
    # Optional so that a missing field is answered with 400
    email: Optional[str] = None
    password: Optional[str] = None


class RegisterRequest(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH)
    role: UserRole = UserRole.TEACHER
    department_id: Optional[int] = None
    phone: Optional[str] = Field(default=None, max_length=20)


class ForgotPasswordRequest(BaseModel):
    email: str


class ResetPasswordRequest(BaseModel):
    token: Optional[str] = None
    new_password: Optional[str] = None
