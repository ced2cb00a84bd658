# smis/services/admin_service.py
"""Administration: accounts, departments, academic calendar and system stats."""
from typing import Any, Dict, Optional, Union
import logging

from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from .activity_service import ActivityService
from .auth_service import AuthService
from .timetable_service import TimetableService
from ..core.exceptions import DuplicateError, NotFoundError, ValidationError
from ..core.security import get_password_hash
from ..models.academic_event import AcademicEvent
from ..models.course import Course
from ..models.department import Department
from ..models.student import Student
from ..models.user import User
from ..utils.constants import EventType, UserRole, UserType
from ..utils.pagination import Paginator
from ..utils.security_utils import LIKE_ESCAPE, like_pattern
from ..utils.serializers import serialize_department, serialize_event, serialize_student, serialize_timetable, serialize_user

logger = logging.getLogger(__name__)

TIMETABLE_ACTIONS = ("add", "update", "delete")
STUDENT_FIELDS = ("student_number", "enrollment_year", "current_year", "enrollment_date")


class AdminService:
    def __init__(self, db: AsyncSession, admin_id: Optional[int] = None):
        self.db = db
        self.admin_id = admin_id
        self.activity = ActivityService(db)

    async def _log(self, action: str, entity_type: str, entity_id: Optional[int], description: str, **metadata):
        await self.activity.log_activity(
            user_id=self.admin_id,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            description=description,
            metadata=metadata or None,
        )

    async def _department_or_404(self, department_id: Optional[int]):
        if department_id is None:
            return
        department = await self.db.get(Department, department_id)
        if not department or department.is_deleted:
            raise NotFoundError("Department")

    async def create_user(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Create a staff user, or a student record when the role is student"""
        email = data["email"].strip().lower()
        role = UserRole(data["role"]).value
        if await AuthService(self.db).email_taken(email):
            raise DuplicateError("email", email, "User with this email already exists")
        await self._department_or_404(data.get("department_id"))

        common = {
            "first_name": data["first_name"],
            "last_name": data["last_name"],
            "email": email,
            "password_hash": get_password_hash(data["password"]),
            "department_id": data.get("department_id"),
            "phone": data.get("phone"),
            "is_active": True,
        }
        if role == UserRole.STUDENT.value:
            account = Student(**common, **{key: data.get(key) for key in STUDENT_FIELDS if data.get(key) is not None})
            serializer, entity_type = serialize_student, "student"
        else:
            account = User(
                **common,
                role=role,
                staff_id=data.get("staff_id"),
                qualifications=data.get("qualifications"),
                subjects=data.get("subjects") or [],
            )
            serializer, entity_type = serialize_user, "user"

        self.db.add(account)
        await self.db.commit()
        await self.db.refresh(account)
        await self._log("user_created", entity_type, account.id, f"Created {role} account {email}")
        return serializer(account)

    async def list_users(self, role: Optional[str] = None, department_id: Optional[int] = None,
                         search: Optional[str] = None, page: int = 1, limit: int = 10) -> Dict[str, Any]:
        """Staff users, or students when role is student, newest first"""
        model = Student if role == UserRole.STUDENT.value else User
        conditions = [model.is_deleted == False]
        if role and model is User:
            conditions.append(User.role == role)
        if department_id is not None:
            conditions.append(model.department_id == department_id)
        if search and search.strip():
            pattern = like_pattern(search)
            conditions.append(or_(
                model.first_name.ilike(pattern, escape=LIKE_ESCAPE),
                model.last_name.ilike(pattern, escape=LIKE_ESCAPE),
                model.email.ilike(pattern, escape=LIKE_ESCAPE),
            ))

        total = (await self.db.execute(select(func.count(model.id)).where(*conditions))).scalar()
        result = await self.db.execute(
            select(model, Department.name.label("department_name"))
            .outerjoin(Department, Department.id == model.department_id)
            .where(*conditions)
            .order_by(model.created_at.desc(), model.id.desc())
            .offset(Paginator.calculate_offset(page, limit))
            .limit(limit)
        )

        serializer = serialize_student if model is Student else serialize_user
        users = []
        for row in result.all():
            data = serializer(row[0])
            data["department_name"] = row.department_name
            users.append(data)
        return Paginator.create_response(users, page, limit, total)

    async def _account_or_404(self, user_id: int, user_type: str) -> Union[User, Student]:
        model = Student if user_type == UserType.STUDENT.value else User
        account = await self.db.get(model, user_id)
        if not account or account.is_deleted:
            raise NotFoundError("User")
        return account

    async def update_user(self, user_id: int, data: Dict[str, Any], user_type: str = UserType.STAFF.value) -> Dict[str, Any]:
        account = await self._account_or_404(user_id, user_type)
        updates = {key: value for key, value in data.items() if value is not None}
        if not updates:
            raise ValidationError("No fields to update")

        if "role" in updates:
            updates["role"] = UserRole(updates["role"]).value
        if "email" in updates:
            updates["email"] = updates["email"].strip().lower()
            auth = AuthService(self.db)
            exclude = {"exclude_student_id": account.id} if isinstance(account, Student) else {"exclude_staff_id": account.id}
            if await auth.email_taken(updates["email"], **exclude):
                raise DuplicateError("email", updates["email"], "User with this email already exists")
        if "department_id" in updates:
            await self._department_or_404(updates["department_id"])
        if "password" in updates:
            updates["password_hash"] = get_password_hash(updates.pop("password"))

        if isinstance(account, Student):
            if "role" in updates and updates["role"] != UserRole.STUDENT.value:
                raise ValidationError("A student's role cannot be changed", field="role")
            updates.pop("role", None)
            for field in ("qualifications", "subjects"):
                updates.pop(field, None)
        elif updates.get("role") == UserRole.STUDENT.value:
            raise ValidationError("A staff user cannot become a student", field="role")

        for key, value in updates.items():
            setattr(account, key, value)
        await self.db.commit()
        await self.db.refresh(account)

        fields = sorted(key for key in updates if key != "password_hash")
        await self._log("user_updated", "student" if isinstance(account, Student) else "user", account.id,
                        f"Updated account {account.email}", fields=fields)
        return serialize_student(account) if isinstance(account, Student) else serialize_user(account)

    async def delete_user(self, user_id: int, user_type: str = UserType.STAFF.value):
        account = await self._account_or_404(user_id, user_type)
        if user_type != UserType.STUDENT.value and account.id == self.admin_id:
            raise ValidationError("You cannot delete your own account")
        account.is_deleted = True
        account.is_active = False
        await self.db.commit()
        await self._log("user_deleted", "student" if isinstance(account, Student) else "user", account.id,
                        f"Deleted account {account.email}")

    async def add_calendar_event(self, data: Dict[str, Any]) -> Dict[str, Any]:
        event = AcademicEvent(
            event_name=data["event_name"],
            event_date=data["event_date"],
            event_type=EventType(data["event_type"]).value,
            description=data.get("description"),
            created_by=self.admin_id,
        )
        self.db.add(event)
        await self.db.commit()
        await self.db.refresh(event)
        await self._log("calendar_event_created", "calendar", event.id, f"Added calendar event {event.event_name}")
        return serialize_event(event)

    async def list_calendar(self, event_type: Optional[str] = None):
        stmt = select(AcademicEvent).where(AcademicEvent.is_deleted == False)
        if event_type:
            stmt = stmt.where(AcademicEvent.event_type == event_type)
        result = await self.db.execute(stmt.order_by(AcademicEvent.event_date))
        return [serialize_event(e) for e in result.scalars().all()]

    async def manage_timetable(self, action: str, timetable_data: Dict[str, Any]) -> Dict[str, Any]:
        if action not in TIMETABLE_ACTIONS:
            raise ValidationError("Invalid action", field="action")

        timetable = TimetableService(self.db)
        if action == "add":
            entry = await timetable.add_slot(timetable_data)
            result = serialize_timetable(entry)
        elif action == "update":
            entry = await timetable.update_slot(timetable_data)
            result = serialize_timetable(entry)
        else:
            result = {"id": await timetable.delete_slot(timetable_data)}

        await self._log(f"timetable_{action}", "timetable", result["id"], f"Timetable slot {result['id']} {action}")
        return result

    async def get_stats(self) -> Dict[str, int]:
        async def count(stmt) -> int:
            return (await self.db.execute(stmt)).scalar() or 0

        return {
            "total_users": await count(select(func.count(User.id)).where(User.is_deleted == False)),
            "total_students": await count(select(func.count(Student.id)).where(Student.is_deleted == False)),
            "total_teachers": await count(
                select(func.count(User.id)).where(User.role == UserRole.TEACHER.value, User.is_deleted == False)
            ),
            "total_departments": await count(select(func.count(Department.id)).where(Department.is_deleted == False)),
            "total_courses": await count(select(func.count(Course.id)).where(Course.is_deleted == False)),
        }

    async def create_department(self, data: Dict[str, Any]) -> Dict[str, Any]:
        code = data["code"].strip().upper()
        existing = await self.db.execute(select(Department.id).where(func.upper(Department.code) == code))
        if existing.first():
            raise DuplicateError("code", code, "A department with this code already exists")

        head_id = data.get("head_id")
        if head_id is not None:
            head = await self.db.get(User, head_id)
            if not head or head.is_deleted:
                raise NotFoundError("User", "Head of department not found")

        department = Department(
            name=data["name"],
            code=code,
            description=data.get("description"),
            head_id=head_id,
            status="active",
        )
        self.db.add(department)
        await self.db.flush()
        if head_id is not None:
            head.department_id = department.id
        await self.db.commit()
        await self.db.refresh(department)
        await self._log("department_created", "department", department.id, f"Created department {department.name}")
        return serialize_department(department)

    async def list_departments(self):
        result = await self.db.execute(
            select(Department).where(Department.is_deleted == False).order_by(Department.name)
        )
        return [serialize_department(d) for d in result.scalars().all()]
