# smis/services/activity_service.py
"""Append-only activity log and the dashboard queries over it."""
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional
import logging

from fastapi import Request
from sqlalchemy import select, func, and_, literal
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from .base_service import BaseService
from ..core.performance_monitor import monitor_performance
from ..models.activity_log import ActivityLog
from ..models.user import User
from ..utils.constants import UserType
from ..utils.serializers import iso

logger = logging.getLogger(__name__)

ALERT_STYLES = {
    "system_backup": ("success", "check-circle"),
    "system_error": ("error", "alert-circle"),
}


class ActivityService(BaseService[ActivityLog]):
    def __init__(self, db: AsyncSession):
        super().__init__(ActivityLog, db)

    async def log_activity(
        self,
        user_id: Optional[int],
        action: str,
        description: str,
        entity_type: Optional[str] = None,
        entity_id: Optional[int] = None,
        metadata: Optional[Dict[str, Any]] = None,
        actor_type: str = UserType.STAFF.value,
        request: Optional[Request] = None,
    ) -> Optional[ActivityLog]:
        """Append one entry; a failed write is logged and does not abort the caller."""
        entry = ActivityLog(
            user_id=user_id,
            actor_type=actor_type,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            description=description,
            details=metadata or {},
            ip_address=request.client.host if request is not None and request.client else None,
            user_agent=request.headers.get("user-agent", "")[:255] if request is not None else None,
        )
        try:
            self.db.add(entry)
            await self.db.commit()
        except SQLAlchemyError as e:
            logger.error(f"Failed to write activity log '{action}': {e}")
            await self.db.rollback()
            return None
        return entry

    def _joined_query(self):
        user_name = User.first_name + literal(" ") + User.last_name
        return select(
            ActivityLog,
            user_name.label("user_name"),
            User.email.label("user_email"),
            User.role.label("user_role"),
        ).outerjoin(
            User,
            and_(User.id == ActivityLog.user_id, ActivityLog.actor_type == UserType.STAFF.value),
        ).where(ActivityLog.is_deleted == False)

    @staticmethod
    def _row_to_dict(row) -> Dict[str, Any]:
        entry = row[0]
        return {
            "id": entry.id,
            "user_id": entry.user_id,
            "actor_type": entry.actor_type,
            "action": entry.action,
            "entity_type": entry.entity_type,
            "entity_id": entry.entity_id,
            "description": entry.description,
            "metadata": entry.details or {},
            "ip_address": entry.ip_address,
            "user_agent": entry.user_agent,
            "created_at": iso(entry.created_at),
            "user_name": row.user_name,
            "user_email": row.user_email,
            "user_role": row.user_role or ("student" if entry.actor_type == UserType.STUDENT.value else None),
        }

    async def get_recent(self, limit: int = 20, filters: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        filters = filters or {}
        stmt = self._joined_query()

        if filters.get("action"):
            stmt = stmt.where(ActivityLog.action == filters["action"])
        if filters.get("entity_type"):
            stmt = stmt.where(ActivityLog.entity_type == filters["entity_type"])
        if filters.get("user_role"):
            if filters["user_role"] == "student":
                stmt = stmt.where(ActivityLog.actor_type == UserType.STUDENT.value)
            else:
                stmt = stmt.where(User.role == filters["user_role"])
        if filters.get("date_from"):
            stmt = stmt.where(ActivityLog.created_at >= filters["date_from"])
        if filters.get("date_to"):
            stmt = stmt.where(ActivityLog.created_at <= filters["date_to"])

        stmt = stmt.order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc()).limit(limit)
        result = await self.db.execute(stmt)
        return [self._row_to_dict(row) for row in result.all()]

    async def get_by_user(self, user_id: int, limit: int = 10, actor_type: str = UserType.STAFF.value) -> List[Dict[str, Any]]:
        stmt = self._joined_query().where(
            ActivityLog.user_id == user_id,
            ActivityLog.actor_type == actor_type,
        ).order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc()).limit(limit)
        result = await self.db.execute(stmt)
        return [self._row_to_dict(row) for row in result.all()]

    async def get_by_entity_type(self, entity_type: str, limit: int = 10) -> List[Dict[str, Any]]:
        stmt = self._joined_query().where(
            ActivityLog.entity_type == entity_type
        ).order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc()).limit(limit)
        result = await self.db.execute(stmt)
        return [self._row_to_dict(row) for row in result.all()]

    @monitor_performance("activity.get_stats")
    async def get_stats(self, date_range: int = 7) -> List[Dict[str, Any]]:
        """Counts grouped by action, entity type and day over the last N days"""
        since = datetime.now(timezone.utc) - timedelta(days=date_range)
        day = func.date(ActivityLog.created_at)
        stmt = (
            select(
                ActivityLog.action,
                ActivityLog.entity_type,
                day.label("date"),
                func.count(ActivityLog.id).label("record_count"),
            )
            .where(ActivityLog.is_deleted == False, ActivityLog.created_at >= since)
            .group_by(ActivityLog.action, ActivityLog.entity_type, day)
            .order_by(day.desc(), func.count(ActivityLog.id).desc())
        )
        result = await self.db.execute(stmt)
        return [
            {
                "action": row.action,
                "entity_type": row.entity_type,
                "date": iso(row.date),
                "count": row.record_count,
            }
            for row in result.all()
        ]

    async def get_system_alerts(self, limit: int = 10) -> List[Dict[str, Any]]:
        stmt = select(ActivityLog).where(
            ActivityLog.is_deleted == False,
            ActivityLog.entity_type == "system",
        ).order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc()).limit(limit)
        result = await self.db.execute(stmt)

        alerts = []
        for entry in result.scalars().all():
            alert_type, icon = ALERT_STYLES.get(entry.action, ("info", "info"))
            details = entry.details or {}
            alerts.append({
                "id": entry.id,
                "type": alert_type,
                "icon": icon,
                "title": entry.description,
                "message": details.get("details") or entry.description,
                "created_at": iso(entry.created_at),
            })
        return alerts
