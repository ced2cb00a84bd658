# smis/services/class_service.py
"""Class groups, their student rosters and attached courses."""
from datetime import date
from typing import Any, Dict, List, Optional
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .base_service import BaseService
from ..core.exceptions import NotFoundError, ValidationError
from ..models.class_model import ClassModel, ClassCourse
from ..models.course import Course
from ..models.student import Student
from ..utils.serializers import serialize_class, serialize_course, serialize_student

logger = logging.getLogger(__name__)


class ClassService(BaseService[ClassModel]):
    def __init__(self, db: AsyncSession):
        super().__init__(ClassModel, db)

    async def get_or_404(self, class_id: int, department_id: Optional[int] = None) -> ClassModel:
        class_obj = await self.get(class_id)
        if not class_obj or (department_id is not None and class_obj.department_id != department_id):
            raise NotFoundError("Class")
        return class_obj

    async def list_classes(self, department_id: Optional[int] = None) -> List[ClassModel]:
        stmt = select(ClassModel).where(ClassModel.is_deleted == False)
        if department_id is not None:
            stmt = stmt.where(ClassModel.department_id == department_id)
        result = await self.db.execute(stmt.order_by(ClassModel.academic_year.desc(), ClassModel.name))
        return result.scalars().all()

    async def roster_students(self, class_obj: ClassModel) -> List[Student]:
        roster = class_obj.roster()
        if not roster:
            return []
        result = await self.db.execute(
            select(Student).where(Student.id.in_(roster), Student.is_deleted == False).order_by(Student.last_name, Student.first_name)
        )
        return result.scalars().all()

    async def class_courses(self, class_id: int) -> List[Course]:
        result = await self.db.execute(
            select(Course)
            .join(ClassCourse, ClassCourse.course_id == Course.id)
            .where(
                ClassCourse.class_id == class_id,
                ClassCourse.is_deleted == False,
                Course.is_deleted == False,
            ).order_by(Course.name)
        )
        return result.scalars().all()

    async def has_course(self, class_id: int, course_id: int) -> bool:
        result = await self.db.execute(
            select(ClassCourse.id).where(
                ClassCourse.class_id == class_id,
                ClassCourse.course_id == course_id,
                ClassCourse.is_deleted == False,
            )
        )
        return result.first() is not None

    async def get_detail(self, class_id: int) -> Dict[str, Any]:
        class_obj = await self.get_or_404(class_id)
        data = serialize_class(class_obj)
        data["student_details"] = [serialize_student(s) for s in await self.roster_students(class_obj)]
        data["courses"] = [serialize_course(c) for c in await self.class_courses(class_obj.id)]
        return data

    async def classes_for_student(self, student_id: int) -> List[ClassModel]:
        # Rosters are JSON lists, filtered here to stay portable across backends
        classes = await self.list_classes()
        return [c for c in classes if student_id in c.roster()]

    async def create_class(self, department_id: int, data: Dict[str, Any], created_by: Optional[int] = None) -> ClassModel:
        if data.get("start_date") and data.get("end_date") and data["start_date"] > data["end_date"]:
            raise ValidationError("Start date cannot be after end date")

        students = await self._validated_students(data.get("students") or [], department_id)
        class_obj = ClassModel(
            name=data["name"],
            academic_year=data["academic_year"],
            start_date=data.get("start_date"),
            end_date=data.get("end_date"),
            department_id=department_id,
            students=students,
            is_active=True,
            created_by=created_by,
        )
        self.db.add(class_obj)
        await self.db.flush()

        for course_id in await self._validated_courses(data.get("courses") or [], department_id):
            self.db.add(ClassCourse(class_id=class_obj.id, course_id=course_id))

        await self.db.commit()
        await self.db.refresh(class_obj)
        logger.info(f"Created class {class_obj.id} in department {department_id}")
        return class_obj

    async def add_students(self, department_id: int, class_id: int, student_ids: List[int]) -> Dict[str, Any]:
        class_obj = await self.get_or_404(class_id, department_id)
        if not class_obj.is_active:
            raise ValidationError("Cannot add students to an inactive class")
        if class_obj.end_date and class_obj.end_date < date.today():
            raise ValidationError("Cannot add students to a class that has ended")

        valid = await self._validated_students(student_ids, department_id)
        roster = class_obj.roster()
        added = [sid for sid in valid if sid not in roster]
        # Reassign so the JSON column change is detected
        class_obj.students = roster + added
        await self.db.commit()
        return {"class_id": class_obj.id, "added": added, "already_enrolled": [sid for sid in valid if sid not in added]}

    async def add_courses(self, department_id: int, class_id: int, course_ids: List[int]) -> Dict[str, Any]:
        class_obj = await self.get_or_404(class_id, department_id)
        valid = await self._validated_courses(course_ids, department_id)

        added = []
        for course_id in valid:
            if not await self.has_course(class_obj.id, course_id):
                self.db.add(ClassCourse(class_id=class_obj.id, course_id=course_id))
                added.append(course_id)
        await self.db.commit()
        return {"class_id": class_obj.id, "added": added}

    async def _validated_students(self, student_ids: List[int], department_id: int) -> List[int]:
        if not student_ids:
            return []
        unique_ids = list(dict.fromkeys(student_ids))
        result = await self.db.execute(
            select(Student.id).where(
                Student.id.in_(unique_ids),
                Student.department_id == department_id,
                Student.is_deleted == False,
            )
        )
        found = set(result.scalars().all())
        missing = [sid for sid in unique_ids if sid not in found]
        if missing:
            raise ValidationError(f"Students not found in department: {', '.join(map(str, missing))}")
        return unique_ids

    async def _validated_courses(self, course_ids: List[int], department_id: int) -> List[int]:
        if not course_ids:
            return []
        unique_ids = list(dict.fromkeys(course_ids))
        result = await self.db.execute(
            select(Course.id).where(
                Course.id.in_(unique_ids),
                Course.department_id == department_id,
                Course.is_deleted == False,
            )
        )
        found = set(result.scalars().all())
        missing = [cid for cid in unique_ids if cid not in found]
        if missing:
            raise ValidationError(f"Courses not found in department: {', '.join(map(str, missing))}")
        return unique_ids
