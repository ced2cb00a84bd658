# smis/services/course_service.py
"""Course lookups and department course management."""
from typing import Any, Dict, List, Optional
import logging

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from .base_service import BaseService
from ..core.exceptions import DuplicateError, NotFoundError, ValidationError
from ..models.course import Course, CourseEnrollment
from ..models.timetable import TimetableEntry
from ..schemas.academic_schemas import CourseFields
from ..utils.validators import parse_id, require_fields, validate_fields

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("course_code", "name", "description", "credits", "semester")


class CourseService(BaseService[Course]):
    def __init__(self, db: AsyncSession):
        super().__init__(Course, db)

    async def get_or_404(self, course_id: int) -> Course:
        course = await self.get(course_id)
        if not course:
            raise NotFoundError("Course")
        return course

    async def get_by_code(self, code: str) -> Course:
        result = await self.db.execute(
            select(Course).where(
                func.upper(Course.course_code) == code.strip().upper(),
                Course.is_deleted == False,
            )
        )
        course = result.scalar_one_or_none()
        if not course:
            raise NotFoundError("Course")
        return course

    async def list_for_department(self, department_id: int) -> List[Course]:
        result = await self.db.execute(
            select(Course).where(
                Course.department_id == department_id,
                Course.is_deleted == False,
            ).order_by(Course.name)
        )
        return result.scalars().all()

    async def enrolled_courses(self, student_id: int) -> List[Course]:
        result = await self.db.execute(
            select(Course)
            .join(CourseEnrollment, CourseEnrollment.course_id == Course.id)
            .where(
                CourseEnrollment.student_id == student_id,
                CourseEnrollment.is_deleted == False,
                Course.is_deleted == False,
            ).order_by(Course.name)
        )
        return result.scalars().all()

    async def _code_taken(self, code: str, exclude_id: Optional[int] = None) -> bool:
        stmt = select(Course.id).where(func.upper(Course.course_code) == code.strip().upper())
        if exclude_id:
            stmt = stmt.where(Course.id != exclude_id)
        return (await self.db.execute(stmt)).first() is not None

    async def add_department_course(self, department_id: int, data: Dict[str, Any]) -> Course:
        require_fields(data, ("course_code", "name"))
        values = validate_fields({key: data[key] for key in EDITABLE_FIELDS if key in data}, CourseFields)
        if await self._code_taken(values["course_code"]):
            raise DuplicateError("course_code", values["course_code"], "A course with this code already exists")

        values["course_code"] = values["course_code"].strip().upper()
        values["department_id"] = department_id
        return await self.create(values)

    async def edit_department_course(self, department_id: int, data: Dict[str, Any]) -> Course:
        course = await self._department_course(department_id, data.get("id"))
        updates = validate_fields({key: data[key] for key in EDITABLE_FIELDS if key in data}, CourseFields)
        if "course_code" in updates and await self._code_taken(updates["course_code"], exclude_id=course.id):
            raise DuplicateError("course_code", updates["course_code"], "A course with this code already exists")

        for key, value in updates.items():
            setattr(course, key, value.strip().upper() if key == "course_code" else value)
        await self.db.commit()
        await self.db.refresh(course)
        return course

    async def delete_department_course(self, department_id: int, data: Dict[str, Any]) -> Course:
        course = await self._department_course(department_id, data.get("id"))
        scheduled = await self.db.execute(
            select(func.count(TimetableEntry.id)).where(
                TimetableEntry.course_id == course.id,
                TimetableEntry.is_deleted == False,
            )
        )
        if scheduled.scalar():
            raise ValidationError("Course is scheduled in the timetable and cannot be deleted")
        course.is_deleted = True
        await self.db.commit()
        return course

    async def _department_course(self, department_id: int, course_id: Any) -> Course:
        if not course_id:
            raise ValidationError("Course id is required", field="id")
        course = await self.get(parse_id(course_id))
        if not course or course.department_id != department_id:
            raise NotFoundError("Course", "Course not found in your department")
        return course
