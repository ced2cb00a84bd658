# smis/services/student_service.py
"""Student self-service: profile, grades, attendance, fees and timetable."""
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional
import logging

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from .activity_service import ActivityService
from .auth_service import AuthService
from .base_service import BaseService
from .class_service import ClassService
from .course_service import CourseService
from .timetable_service import TimetableService
from ..core.exceptions import NotFoundError, ValidationError
from ..models.attendance import Attendance
from ..models.course import Course
from ..models.fee import Fee
from ..models.grade import Grade
from ..models.student import Student
from ..models.user import User
from ..schemas.profile_schemas import StudentProfileUpdate
from ..utils.constants import GRADE_POINTS, FeeStatus, StudentStatus, UserType, values
from ..utils.serializers import (
    money, serialize_attendance, serialize_class, serialize_course, serialize_fee,
    serialize_grade, serialize_student,
)
from ..utils.validators import check_allowed_fields, parse_date, validate_fields

logger = logging.getLogger(__name__)

PROFILE_FIELDS = (
    "email", "first_name", "last_name", "date_of_birth", "gender", "address", "phone",
    "enrollment_year", "current_year", "enrollment_date", "graduation_date", "status",
)


def calculate_gpa(letter_grades: Iterable[str]) -> float:
    """Mean grade point of the given letter grades, 0.0 when there are none"""
    points = [GRADE_POINTS.get((grade or "").strip().upper(), 0.0) for grade in letter_grades]
    if not points:
        return 0.0
    return round(sum(points) / len(points), 2)


class StudentService(BaseService[Student]):
    def __init__(self, db: AsyncSession):
        super().__init__(Student, db)

    async def get_or_404(self, student_id: int) -> Student:
        student = await self.get(student_id)
        if not student:
            raise NotFoundError("Student")
        return student

    async def get_profile(self, student_id: int) -> Dict[str, Any]:
        return serialize_student(await self.get_or_404(student_id))

    async def update_profile(self, student_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        student = await self.get_or_404(student_id)
        check_allowed_fields(data, PROFILE_FIELDS)

        updates = validate_fields(data, StudentProfileUpdate)
        if "status" in updates and updates["status"] not in values(StudentStatus):
            raise ValidationError("Invalid status", field="status")
        if "email" in updates:
            updates["email"] = updates["email"].strip().lower()
            if await AuthService(self.db).email_taken(updates["email"], exclude_student_id=student.id):
                raise ValidationError("Email is invalid or already in use", field="email")

        for key, value in updates.items():
            setattr(student, key, value)
        await self.db.commit()
        await self.db.refresh(student)

        await ActivityService(self.db).log_activity(
            user_id=student.id,
            actor_type=UserType.STUDENT.value,
            action="profile_updated",
            entity_type="student",
            entity_id=student.id,
            description=f"{student.full_name} updated their profile",
            metadata={"fields": sorted(updates)},
        )
        return serialize_student(student)

    async def get_grades(self, student_id: int) -> Dict[str, Any]:
        await self.get_or_404(student_id)
        result = await self.db.execute(
            select(
                Grade,
                Course.name.label("course_name"),
                Course.course_code.label("course_code"),
                (User.first_name + " " + User.last_name).label("teacher_name"),
            )
            .join(Course, Course.id == Grade.course_id)
            .outerjoin(User, User.id == Grade.teacher_id)
            .where(Grade.student_id == student_id, Grade.is_deleted == False)
            .order_by(Grade.year.desc(), Grade.semester, Course.name)
        )
        rows = result.all()
        grades = []
        for row in rows:
            data = serialize_grade(row[0])
            data.update(course_name=row.course_name, course_code=row.course_code, teacher_name=row.teacher_name)
            grades.append(data)
        return {"grades": grades, "gpa": calculate_gpa(row[0].grade for row in rows)}

    async def get_attendance(self, student_id: int, start_date: Optional[str] = None, end_date: Optional[str] = None) -> Dict[str, Any]:
        await self.get_or_404(student_id)
        start = parse_date(start_date, "start_date")
        end = parse_date(end_date, "end_date")
        if start and end and start > end:
            raise ValidationError("Start date cannot be after end date")

        stmt = (
            select(Attendance, Course.name.label("course_name"), Course.course_code.label("course_code"))
            .join(Course, Course.id == Attendance.course_id)
            .where(Attendance.student_id == student_id, Attendance.is_deleted == False)
        )
        if start:
            stmt = stmt.where(Attendance.date >= start)
        if end:
            stmt = stmt.where(Attendance.date <= end)
        result = await self.db.execute(stmt.order_by(Attendance.date.desc()))

        records = []
        summary = {status: 0 for status in ("present", "absent", "late")}
        for row in result.all():
            data = serialize_attendance(row[0])
            data.update(course_name=row.course_name, course_code=row.course_code)
            records.append(data)
            summary[row[0].status] = summary.get(row[0].status, 0) + 1

        total = len(records)
        summary["total"] = total
        summary["attendance_percentage"] = round(summary["present"] / total * 100, 2) if total else 0.0
        return {"attendance": records, "summary": summary}

    async def get_fees(self, student_id: int) -> Dict[str, Any]:
        await self.get_or_404(student_id)
        result = await self.db.execute(
            select(Fee).where(Fee.student_id == student_id, Fee.is_deleted == False).order_by(Fee.due_date.desc())
        )
        fees = result.scalars().all()
        return {
            "fees": [serialize_fee(fee) for fee in fees],
            "total_outstanding": money(await self.total_outstanding(student_id)),
        }

    async def total_outstanding(self, student_id: int) -> Decimal:
        result = await self.db.execute(
            select(func.coalesce(func.sum(Fee.amount), 0)).where(
                Fee.student_id == student_id,
                Fee.is_deleted == False,
                Fee.status.in_((FeeStatus.PENDING.value, FeeStatus.OVERDUE.value)),
            )
        )
        return Decimal(str(result.scalar() or 0))

    async def get_timetable(self, student_id: int, semester: Optional[str] = None) -> List[Dict[str, Any]]:
        await self.get_or_404(student_id)
        if semester is not None and not semester.strip():
            raise ValidationError("Invalid semester", field="semester")
        classes = await ClassService(self.db).classes_for_student(student_id)
        return await TimetableService(self.db).for_student(student_id, [c.id for c in classes], semester)

    async def get_courses(self, student_id: int) -> List[Dict[str, Any]]:
        await self.get_or_404(student_id)
        return [serialize_course(c) for c in await CourseService(self.db).enrolled_courses(student_id)]

    async def get_classes(self, student_id: int) -> List[Dict[str, Any]]:
        await self.get_or_404(student_id)
        return [serialize_class(c) for c in await ClassService(self.db).classes_for_student(student_id)]
