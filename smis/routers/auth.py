"""Authentication endpoints for staff users and students."""
from fastapi import APIRouter, BackgroundTasks, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from ..core.database import get_db
from ..core.dependencies import CurrentUser, get_current_user
from ..schemas.auth_schemas import (
    ForgotPasswordRequest,
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
)
from ..services.auth_service import AuthService, RESET_REQUEST_MESSAGE
from ..utils.responses import success_response

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/auth", tags=["Authentication"])


@router.post("/register", status_code=201)
async def register(body: RegisterRequest, db: AsyncSession = Depends(get_db)):
    user = await AuthService(db).register(body.model_dump())
    return success_response({"id": user.id, "email": user.email, "role": user.role},
                            "User registered successfully")


@router.post("/login")
async def login(body: LoginRequest, request: Request, db: AsyncSession = Depends(get_db)):
    data = await AuthService(db).login(body.email, body.password, request)
    return success_response(data, "Login successful")


@router.post("/logout")
async def logout():
    """Tokens are stateless; the client discards its copy"""
    return success_response(message="Logged out successfully")


@router.get("/profile")
async def get_profile(current_user: CurrentUser = Depends(get_current_user)):
    account = current_user.account
    return success_response({
        "id": account.id,
        "email": account.email,
        "first_name": account.first_name,
        "last_name": account.last_name,
        "role": account.role,
        "user_type": current_user.user_type,
        "department_id": account.department_id,
        "is_active": account.is_active,
        "created_at": account.created_at.isoformat() if account.created_at else None,
    })


@router.post("/forgot-password")
async def forgot_password(
    body: ForgotPasswordRequest,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
):
    service = AuthService(db)
    token = await service.request_password_reset(body.email)
    if token:
        background_tasks.add_task(service.send_reset_email, body.email.strip().lower(), token)
    # Same answer for known and unknown emails
    return success_response(message=RESET_REQUEST_MESSAGE)


@router.post("/reset-password")
async def reset_password(body: ResetPasswordRequest, db: AsyncSession = Depends(get_db)):
    await AuthService(db).reset_password(body.token, body.new_password)
    return success_response(message="Password has been reset successfully")
