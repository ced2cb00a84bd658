"""Administration endpoints."""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.cache_decorators import cache_response, invalidate_cache_pattern
from ..core.database import get_db
from ..core.dependencies import CurrentUser, require_roles
from ..schemas.admin_schemas import (
    CalendarEventCreate,
    DepartmentCreate,
    TimetableAction,
    UserCreate,
    UserUpdate,
)
from ..services.admin_service import AdminService
from ..utils.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, UserRole, UserType
from ..utils.responses import success_response

router = APIRouter(prefix="/api/admin", tags=["Administration"])

admin_only = require_roles(UserRole.ADMIN)


async def get_admin_service(
    current_user: CurrentUser = Depends(admin_only),
    db: AsyncSession = Depends(get_db),
) -> AdminService:
    return AdminService(db, admin_id=current_user.id)


@router.post("/users", status_code=201)
async def create_user(body: UserCreate, service: AdminService = Depends(get_admin_service)):
    """Create a staff user, or a student when role is student"""
    return success_response(await service.create_user(body.model_dump()), "User created successfully")


@router.get("/users")
async def list_users(
    role: Optional[UserRole] = Query(None),
    department_id: Optional[int] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    service: AdminService = Depends(get_admin_service),
):
    data = await service.list_users(role.value if role else None, department_id, search, page, limit)
    return success_response(data)


@router.put("/users/{user_id}")
async def update_user(
    user_id: int,
    body: UserUpdate,
    user_type: UserType = Query(UserType.STAFF),
    service: AdminService = Depends(get_admin_service),
):
    user = await service.update_user(user_id, body.model_dump(exclude_unset=True), user_type.value)
    return success_response(user, "User updated successfully")


@router.delete("/users/{user_id}")
async def delete_user(
    user_id: int,
    user_type: UserType = Query(UserType.STAFF),
    service: AdminService = Depends(get_admin_service),
):
    await service.delete_user(user_id, user_type.value)
    return success_response(message="User deleted successfully")


@router.post("/calendar", status_code=201)
@invalidate_cache_pattern("calendar")
async def add_calendar_event(body: CalendarEventCreate, service: AdminService = Depends(get_admin_service)):
    return success_response(await service.add_calendar_event(body.model_dump()), "Calendar event added successfully")


@router.get("/calendar")
@cache_response("calendar", ttl=600)
async def get_calendar(
    event_type: Optional[str] = Query(None),
    service: AdminService = Depends(get_admin_service),
):
    return success_response(await service.list_calendar(event_type))


@router.post("/timetable")
async def manage_timetable(body: TimetableAction, service: AdminService = Depends(get_admin_service)):
    """Add, update or delete a timetable slot"""
    result = await service.manage_timetable(body.action, body.timetable_data)
    messages = {
        "add": "Timetable slot added successfully",
        "update": "Timetable slot updated successfully",
        "delete": "Timetable slot deleted successfully",
    }
    return success_response(result, messages[body.action])


@router.get("/stats")
async def get_system_stats(service: AdminService = Depends(get_admin_service)):
    return success_response(await service.get_stats())


@router.post("/departments", status_code=201)
@invalidate_cache_pattern("departments")
async def create_department(body: DepartmentCreate, service: AdminService = Depends(get_admin_service)):
    return success_response(await service.create_department(body.model_dump()), "Department created successfully")


@router.get("/departments")
@cache_response("departments", ttl=600)
async def list_departments(service: AdminService = Depends(get_admin_service)):
    return success_response(await service.list_departments())
