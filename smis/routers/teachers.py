"""Teacher portal endpoints."""
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.dependencies import CurrentUser, require_roles
from ..schemas.academic_schemas import AttendanceSubmit, GradeSubmit
from ..services.teacher_service import TeacherService
from ..utils.constants import UserRole
from ..utils.responses import success_response

router = APIRouter(prefix="/api/teachers", tags=["Teacher Portal"])

teaching_staff = require_roles(UserRole.TEACHER, UserRole.HOD)


@router.get("/profile")
async def get_profile(
    current_user: CurrentUser = Depends(teaching_staff),
    db: AsyncSession = Depends(get_db),
):
    return success_response(await TeacherService(db).get_profile(current_user.id))


@router.put("/profile")
async def update_profile(
    data: Dict[str, Any] = Body(...),
    current_user: CurrentUser = Depends(teaching_staff),
    db: AsyncSession = Depends(get_db),
):
    profile = await TeacherService(db).update_profile(current_user.id, data)
    return success_response(profile, "Profile updated successfully")


@router.get("/classes")
async def get_classes(
    current_user: CurrentUser = Depends(teaching_staff),
    db: AsyncSession = Depends(get_db),
):
    """Courses the teacher is scheduled to teach"""
    return success_response(await TeacherService(db).get_classes(current_user.id))


@router.get("/classes/students")
async def get_all_students(
    current_user: CurrentUser = Depends(teaching_staff),
    db: AsyncSession = Depends(get_db),
):
    return success_response(await TeacherService(db).get_students(current_user.id))


@router.get("/classes/{course_id}/students")
async def get_course_students(
    course_id: int,
    current_user: CurrentUser = Depends(teaching_staff),
    db: AsyncSession = Depends(get_db),
):
    return success_response(await TeacherService(db).get_students(current_user.id, course_id))


@router.post("/attendance")
async def mark_attendance(
    body: AttendanceSubmit,
    current_user: CurrentUser = Depends(teaching_staff),
    db: AsyncSession = Depends(get_db),
):
    results = await TeacherService(db).mark_attendance(
        current_user.id,
        body.course_id,
        body.date,
        [record.model_dump() for record in body.attendance],
    )
    return success_response(results, "Attendance processed")


@router.post("/grades", status_code=201)
async def enter_grades(
    body: GradeSubmit,
    current_user: CurrentUser = Depends(teaching_staff),
    db: AsyncSession = Depends(get_db),
):
    results = await TeacherService(db).enter_grades(
        current_user.id, body.course_id, [entry.model_dump() for entry in body.grades]
    )
    return success_response(results, "Grades entered successfully")


@router.put("/grades/{grade_id}")
async def update_grade(
    grade_id: int,
    data: Dict[str, Any] = Body(...),
    current_user: CurrentUser = Depends(teaching_staff),
    db: AsyncSession = Depends(get_db),
):
    grade = await TeacherService(db).update_grade(current_user.id, grade_id, data)
    return success_response(grade, "Grade updated successfully")


@router.delete("/grades/{grade_id}")
async def delete_grade(
    grade_id: int,
    current_user: CurrentUser = Depends(teaching_staff),
    db: AsyncSession = Depends(get_db),
):
    await TeacherService(db).delete_grade(current_user.id, grade_id)
    return success_response(message="Grade deleted successfully")


@router.get("/grades/class/{class_id}/course/{course_id}")
async def get_class_course_grades(
    class_id: int,
    course_id: int,
    current_user: CurrentUser = Depends(teaching_staff),
    db: AsyncSession = Depends(get_db),
):
    return success_response(await TeacherService(db).class_course_grades(current_user.id, class_id, course_id))


@router.get("/timetable")
async def get_timetable(
    semester: Optional[str] = Query(None),
    current_user: CurrentUser = Depends(teaching_staff),
    db: AsyncSession = Depends(get_db),
):
    return success_response(await TeacherService(db).get_timetable(current_user.id, semester))


@router.get("/timetable/{semester}")
async def get_semester_timetable(
    semester: str,
    current_user: CurrentUser = Depends(teaching_staff),
    db: AsyncSession = Depends(get_db),
):
    return success_response(await TeacherService(db).get_timetable(current_user.id, semester))
