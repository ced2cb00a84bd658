"""Notification inbox and sending endpoints."""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.dependencies import CurrentUser, get_current_user, get_hod_department, require_roles
from ..schemas.notification_schemas import (
    CourseNotification,
    DepartmentNotification,
    NotificationContent,
    UserNotification,
)
from ..services.notification_service import NotificationService
from ..utils.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, UserRole
from ..utils.responses import success_response

router = APIRouter(prefix="/api/notifications", tags=["Notifications"])

CONTENT_FIELDS = {"title", "message", "type", "data"}


def _sent(count: int):
    return success_response({"recipients": count}, f"Notification sent to {count} recipients")


@router.get("/")
async def get_notifications(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    unread_only: bool = Query(False),
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    data = await NotificationService(db).list_for(current_user.id, current_user.user_type, page, limit, unread_only)
    return success_response(data)


@router.put("/read-all")
async def mark_all_read(
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    count = await NotificationService(db).mark_all_read(current_user.id, current_user.user_type)
    return success_response({"updated": count}, f"{count} notifications marked as read")


@router.put("/{notification_id}/read")
async def mark_read(
    notification_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await NotificationService(db).mark_read(notification_id, current_user.id, current_user.user_type)
    return success_response(message="Notification marked as read")


@router.post("/send/user", status_code=201)
async def send_to_user(
    body: UserNotification,
    current_user: CurrentUser = Depends(require_roles(UserRole.ADMIN, UserRole.HOD, UserRole.TEACHER)),
    db: AsyncSession = Depends(get_db),
):
    count = await NotificationService(db).send_to_user(
        current_user.id, body.user_id, body.recipient_type.value, body.model_dump(include=CONTENT_FIELDS)
    )
    return _sent(count)


@router.post("/send/department", status_code=201)
async def send_to_department(
    body: DepartmentNotification,
    current_user: CurrentUser = Depends(get_current_user),
    department_id: int = Depends(get_hod_department),
    db: AsyncSession = Depends(get_db),
):
    count = await NotificationService(db).send_to_department(
        current_user.id, department_id, body.model_dump(include=CONTENT_FIELDS), body.include_students
    )
    return _sent(count)


@router.post("/send/department-teachers", status_code=201)
async def send_to_department_teachers(
    body: NotificationContent,
    current_user: CurrentUser = Depends(get_current_user),
    department_id: int = Depends(get_hod_department),
    db: AsyncSession = Depends(get_db),
):
    count = await NotificationService(db).send_to_department_teachers(current_user.id, department_id, body.model_dump())
    return _sent(count)


@router.post("/send/course", status_code=201)
async def send_to_course(
    body: CourseNotification,
    current_user: CurrentUser = Depends(require_roles(UserRole.TEACHER, UserRole.HOD)),
    db: AsyncSession = Depends(get_db),
):
    count = await NotificationService(db).send_to_course(
        current_user.id, body.course_id, body.model_dump(include=CONTENT_FIELDS)
    )
    return _sent(count)


@router.post("/send/my-students", status_code=201)
async def send_to_my_students(
    body: NotificationContent,
    current_user: CurrentUser = Depends(require_roles(UserRole.TEACHER, UserRole.HOD)),
    db: AsyncSession = Depends(get_db),
):
    count = await NotificationService(db).send_to_my_students(current_user.id, body.model_dump())
    return _sent(count)


@router.post("/send/all-users", status_code=201)
async def send_to_all_users(
    body: NotificationContent,
    current_user: CurrentUser = Depends(require_roles(UserRole.ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    count = await NotificationService(db).send_to_all_users(current_user.id, body.model_dump())
    return _sent(count)


@router.post("/send/all-teachers", status_code=201)
async def send_to_all_teachers(
    body: NotificationContent,
    current_user: CurrentUser = Depends(require_roles(UserRole.ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    count = await NotificationService(db).send_to_all_teachers(current_user.id, body.model_dump())
    return _sent(count)
