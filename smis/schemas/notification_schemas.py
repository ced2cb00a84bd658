# smis/schemas/notification_schemas.py
"""Pydantic schemas for sending notifications."""
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field

from ..utils.constants import NotificationType, UserType


class NotificationContent(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1)
    type: NotificationType = NotificationType.GENERAL
    data: Optional[Dict[str, Any]] = None


class UserNotification(NotificationContent):
    user_id: int
    recipient_type: UserType = UserType.STAFF


class DepartmentNotification(NotificationContent):
    include_students: bool = True


class CourseNotification(NotificationContent):
    course_id: int
