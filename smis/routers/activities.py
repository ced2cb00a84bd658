"""Activity log endpoints."""
from datetime import datetime, time, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.dependencies import CurrentUser, get_current_user, require_roles
from ..core.exceptions import PermissionDeniedError
from ..schemas.activity_schemas import ActivityCreate
from ..services.activity_service import ActivityService
from ..utils.constants import UserRole, UserType
from ..utils.responses import success_response
from ..utils.validators import parse_date, require_fields

router = APIRouter(prefix="/api/activities", tags=["Activities"])

admin_only = require_roles(UserRole.ADMIN)


def _day_bound(value: Optional[str], field: str, end: bool = False) -> Optional[datetime]:
    day = parse_date(value, field)
    if day is None:
        return None
    return datetime.combine(day, time.max if end else time.min, tzinfo=timezone.utc)


@router.get("/recent")
async def get_recent_activities(
    limit: int = Query(20, ge=1, le=100),
    action: Optional[str] = Query(None),
    entity_type: Optional[str] = Query(None),
    user_role: Optional[str] = Query(None),
    date_from: Optional[str] = Query(None),
    date_to: Optional[str] = Query(None),
    current_user: CurrentUser = Depends(admin_only),
    db: AsyncSession = Depends(get_db),
):
    filters = {
        "action": action,
        "entity_type": entity_type,
        "user_role": user_role,
        "date_from": _day_bound(date_from, "date_from"),
        "date_to": _day_bound(date_to, "date_to", end=True),
    }
    return success_response(await ActivityService(db).get_recent(limit, filters))


@router.get("/user/{user_id}")
async def get_user_activities(
    user_id: int,
    limit: int = Query(10, ge=1, le=100),
    user_type: UserType = Query(UserType.STAFF),
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Own activity, or anyone's for admins"""
    own = user_id == current_user.id and user_type.value == current_user.user_type
    if current_user.role != UserRole.ADMIN.value and not own:
        raise PermissionDeniedError("You can only view your own activity")
    return success_response(await ActivityService(db).get_by_user(user_id, limit, user_type.value))


@router.get("/entity/{entity_type}")
async def get_entity_activities(
    entity_type: str,
    limit: int = Query(10, ge=1, le=100),
    current_user: CurrentUser = Depends(require_roles(UserRole.ADMIN, UserRole.HOD)),
    db: AsyncSession = Depends(get_db),
):
    return success_response(await ActivityService(db).get_by_entity_type(entity_type, limit))


@router.get("/stats")
async def get_activity_stats(
    date_range: int = Query(7, ge=1, le=365),
    current_user: CurrentUser = Depends(admin_only),
    db: AsyncSession = Depends(get_db),
):
    return success_response(await ActivityService(db).get_stats(date_range))


@router.get("/alerts")
async def get_system_alerts(
    limit: int = Query(10, ge=1, le=100),
    current_user: CurrentUser = Depends(admin_only),
    db: AsyncSession = Depends(get_db),
):
    return success_response(await ActivityService(db).get_system_alerts(limit))


@router.post("/", status_code=201)
async def create_activity(
    body: ActivityCreate,
    request: Request,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Record an activity for the caller; admins may record one for another user"""
    data = body.model_dump()
    require_fields(data, ("action", "description"))
    user_id = data["user_id"] if data["user_id"] and current_user.role == UserRole.ADMIN.value else current_user.id

    entry = await ActivityService(db).log_activity(
        user_id=user_id,
        actor_type=current_user.user_type,
        action=data["action"],
        description=data["description"],
        entity_type=data["entity_type"],
        entity_id=data["entity_id"],
        metadata=data["metadata"],
        request=request,
    )
    return success_response({"id": entry.id if entry else None}, "Activity logged successfully")
