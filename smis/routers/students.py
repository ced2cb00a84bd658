"""Student portal endpoints."""
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.dependencies import CurrentUser, require_roles
from ..services.student_service import StudentService
from ..utils.constants import UserRole
from ..utils.responses import success_response

router = APIRouter(prefix="/api/students", tags=["Student Portal"])

student_only = require_roles(UserRole.STUDENT)


@router.get("/profile")
async def get_profile(
    current_user: CurrentUser = Depends(student_only),
    db: AsyncSession = Depends(get_db),
):
    return success_response(await StudentService(db).get_profile(current_user.id))


@router.put("/profile")
async def update_profile(
    data: Dict[str, Any] = Body(...),
    current_user: CurrentUser = Depends(student_only),
    db: AsyncSession = Depends(get_db),
):
    """Update whitelisted profile fields"""
    profile = await StudentService(db).update_profile(current_user.id, data)
    return success_response(profile, "Profile updated successfully")


@router.get("/grades")
async def get_grades(
    current_user: CurrentUser = Depends(student_only),
    db: AsyncSession = Depends(get_db),
):
    return success_response(await StudentService(db).get_grades(current_user.id))


@router.get("/attendance")
async def get_attendance(
    start_date: Optional[str] = Query(None),
    end_date: Optional[str] = Query(None),
    current_user: CurrentUser = Depends(student_only),
    db: AsyncSession = Depends(get_db),
):
    return success_response(await StudentService(db).get_attendance(current_user.id, start_date, end_date))


@router.get("/fees")
async def get_fees(
    current_user: CurrentUser = Depends(student_only),
    db: AsyncSession = Depends(get_db),
):
    return success_response(await StudentService(db).get_fees(current_user.id))


@router.get("/timetable")
async def get_timetable(
    semester: Optional[str] = Query(None),
    current_user: CurrentUser = Depends(student_only),
    db: AsyncSession = Depends(get_db),
):
    return success_response(await StudentService(db).get_timetable(current_user.id, semester))


@router.get("/courses")
async def get_courses(
    current_user: CurrentUser = Depends(student_only),
    db: AsyncSession = Depends(get_db),
):
    return success_response(await StudentService(db).get_courses(current_user.id))


@router.get("/classes")
async def get_classes(
    current_user: CurrentUser = Depends(student_only),
    db: AsyncSession = Depends(get_db),
):
    return success_response(await StudentService(db).get_classes(current_user.id))
