"""Course and class lookups for any authenticated account."""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.cache_decorators import cache_response
from ..core.database import get_db
from ..core.dependencies import CurrentUser, get_current_user
from ..core.exceptions import PermissionDeniedError
from ..services.class_service import ClassService
from ..services.course_service import CourseService
from ..utils.responses import success_response
from ..utils.serializers import serialize_class, serialize_course

courses_router = APIRouter(prefix="/api/courses", tags=["Courses"])
classes_router = APIRouter(prefix="/api/classes", tags=["Classes"])


@courses_router.get("/code/{code}")
@cache_response("courses:code")
async def get_course_by_code(
    code: str,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return success_response(serialize_course(await CourseService(db).get_by_code(code)))


@courses_router.get("/{course_id}")
@cache_response("courses:id")
async def get_course(
    course_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return success_response(serialize_course(await CourseService(db).get_or_404(course_id)))


@classes_router.get("/")
@cache_response("classes:list")
async def list_classes(
    department: Optional[int] = Query(None, alias="department_id"),
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    classes = await ClassService(db).list_classes(department)
    return success_response([serialize_class(c) for c in classes])


@classes_router.get("/student/{student_id}")
async def get_student_classes(
    student_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Classes whose roster holds the student; students may only look up themselves"""
    if current_user.is_student and current_user.id != student_id:
        raise PermissionDeniedError("You can only view your own classes")
    classes = await ClassService(db).classes_for_student(student_id)
    return success_response([serialize_class(c) for c in classes])


@classes_router.get("/{class_id}")
@cache_response("classes:detail")
async def get_class(
    class_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return success_response(await ClassService(db).get_detail(class_id))
