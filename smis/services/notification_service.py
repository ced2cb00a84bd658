# smis/services/notification_service.py
"""In-app notifications: inbox queries and fan-out to groups of recipients."""
from typing import Any, Dict, Iterable, List, Optional, Tuple
import logging

from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession

from .activity_service import ActivityService
from .teacher_service import TeacherService
from ..core.exceptions import NotFoundError
from ..models.notification import Notification
from ..models.student import Student
from ..models.user import User
from ..utils.constants import NotificationType, UserRole, UserType
from ..utils.pagination import Paginator
from ..utils.serializers import serialize_notification

logger = logging.getLogger(__name__)

# (recipient_type, account id)
Recipient = Tuple[str, int]


class NotificationService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_for(self, user_id: int, recipient_type: str, page: int = 1, limit: int = 20,
                       unread_only: bool = False) -> Dict[str, Any]:
        conditions = [
            Notification.user_id == user_id,
            Notification.recipient_type == recipient_type,
            Notification.is_deleted == False,
        ]
        if unread_only:
            conditions.append(Notification.is_read == False)

        total = (await self.db.execute(select(func.count(Notification.id)).where(*conditions))).scalar()
        unread = (await self.db.execute(
            select(func.count(Notification.id)).where(*conditions[:3], Notification.is_read == False)
        )).scalar()
        result = await self.db.execute(
            select(Notification).where(*conditions)
            .order_by(Notification.created_at.desc(), Notification.id.desc())
            .offset(Paginator.calculate_offset(page, limit))
            .limit(limit)
        )
        items = [serialize_notification(n) for n in result.scalars().all()]
        return Paginator.create_response(items, page, limit, total, {"unread_count": unread})

    async def mark_read(self, notification_id: int, user_id: int, recipient_type: str):
        result = await self.db.execute(
            update(Notification)
            .where(
                Notification.id == notification_id,
                Notification.user_id == user_id,
                Notification.recipient_type == recipient_type,
                Notification.is_read == False,
                Notification.is_deleted == False,
            )
            .values(is_read=True)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            await self.db.rollback()
            raise NotFoundError("Notification", "Notification not found or already read")
        await self.db.commit()

    async def mark_all_read(self, user_id: int, recipient_type: str) -> int:
        result = await self.db.execute(
            update(Notification)
            .where(
                Notification.user_id == user_id,
                Notification.recipient_type == recipient_type,
                Notification.is_read == False,
                Notification.is_deleted == False,
            )
            .values(is_read=True)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        return result.rowcount

    async def notify(self, recipients: Iterable[Recipient], content: Dict[str, Any],
                     sender_id: Optional[int] = None, empty_message: str = "No recipients found") -> int:
        """Create one notification per distinct recipient"""
        unique = list(dict.fromkeys(recipients))
        if not unique:
            raise NotFoundError("Recipient", empty_message)

        notification_type = NotificationType(content.get("type") or NotificationType.GENERAL).value
        for recipient_type, user_id in unique:
            self.db.add(Notification(
                sender_id=sender_id,
                user_id=user_id,
                recipient_type=recipient_type,
                type=notification_type,
                title=content["title"],
                message=content["message"],
                data=content.get("data"),
                is_read=False,
            ))
        await self.db.commit()

        logger.info(f"Sent '{content['title']}' to {len(unique)} recipients")
        await ActivityService(self.db).log_activity(
            user_id=sender_id,
            action="notification_sent",
            entity_type="notification",
            entity_id=None,
            description=f"Sent notification '{content['title']}' to {len(unique)} recipients",
            metadata={"recipients": len(unique), "type": notification_type},
        )
        return len(unique)

    async def _staff(self, *conditions) -> List[Recipient]:
        result = await self.db.execute(
            select(User.id).where(User.is_active == True, User.is_deleted == False, *conditions).order_by(User.id)
        )
        return [(UserType.STAFF.value, user_id) for user_id in result.scalars().all()]

    async def _students(self, *conditions) -> List[Recipient]:
        result = await self.db.execute(
            select(Student.id).where(Student.is_active == True, Student.is_deleted == False, *conditions).order_by(Student.id)
        )
        return [(UserType.STUDENT.value, student_id) for student_id in result.scalars().all()]

    async def send_to_user(self, sender_id: int, user_id: int, recipient_type: str, content: Dict[str, Any]) -> int:
        model = Student if recipient_type == UserType.STUDENT.value else User
        account = await self.db.get(model, user_id)
        if not account or account.is_deleted:
            raise NotFoundError("User")
        return await self.notify([(recipient_type, user_id)], content, sender_id)

    async def send_to_department(self, sender_id: int, department_id: int, content: Dict[str, Any],
                                 include_students: bool = True) -> int:
        recipients = await self._staff(User.department_id == department_id, User.id != sender_id)
        if include_students:
            recipients += await self._students(Student.department_id == department_id)
        return await self.notify(recipients, content, sender_id, "No users found in this department")

    async def send_to_department_teachers(self, sender_id: int, department_id: int, content: Dict[str, Any]) -> int:
        recipients = await self._staff(User.department_id == department_id, User.role == UserRole.TEACHER.value)
        return await self.notify(recipients, content, sender_id, "No teachers found in this department")

    async def send_to_course(self, teacher_id: int, course_id: int, content: Dict[str, Any]) -> int:
        students = await TeacherService(self.db).get_students(teacher_id, course_id)
        recipients = [(UserType.STUDENT.value, s["id"]) for s in students if s["is_active"]]
        return await self.notify(recipients, content, teacher_id, "No students found in this course")

    async def send_to_my_students(self, teacher_id: int, content: Dict[str, Any]) -> int:
        students = await TeacherService(self.db).get_students(teacher_id)
        recipients = [(UserType.STUDENT.value, s["id"]) for s in students if s["is_active"]]
        return await self.notify(recipients, content, teacher_id, "No students found for your courses")

    async def send_to_all_users(self, sender_id: int, content: Dict[str, Any]) -> int:
        recipients = await self._staff(User.id != sender_id) + await self._students()
        return await self.notify(recipients, content, sender_id, "No users found")

    async def send_to_all_teachers(self, sender_id: int, content: Dict[str, Any]) -> int:
        recipients = await self._staff(User.role == UserRole.TEACHER.value)
        return await self.notify(recipients, content, sender_id, "No teachers found")
