# smis/services/timetable_service.py
"""Timetable slots: conflict detection, role-scoped views and approval."""
from typing import Any, Dict, List, Optional
import logging

from sqlalchemy import select, or_, case
from sqlalchemy.ext.asyncio import AsyncSession

from .base_service import BaseService
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..models.class_model import ClassModel
from ..models.course import Course, CourseEnrollment
from ..models.timetable import TimetableEntry
from ..models.user import User
from ..schemas.admin_schemas import TimetableSlotFields
from ..utils.constants import ApprovalStatus, DayOfWeek, Semester, values
from ..utils.serializers import serialize_timetable
from ..utils.validators import parse_id, parse_time, require_fields, validate_fields

logger = logging.getLogger(__name__)

SLOT_FIELDS = ("course_id", "teacher_id", "class_id", "day_of_week", "start_time",
               "end_time", "room", "semester", "academic_year")

# Monday first instead of alphabetical
_DAY_ORDER = case(
    {day: index for index, day in enumerate(values(DayOfWeek))},
    value=TimetableEntry.day_of_week,
    else_=7,
)


class TimetableService(BaseService[TimetableEntry]):
    def __init__(self, db: AsyncSession):
        super().__init__(TimetableEntry, db)

    def _detailed_query(self):
        return (
            select(
                TimetableEntry,
                Course.name.label("course_name"),
                Course.course_code.label("course_code"),
                (User.first_name + " " + User.last_name).label("teacher_name"),
                ClassModel.name.label("class_name"),
            )
            .join(Course, Course.id == TimetableEntry.course_id)
            .join(User, User.id == TimetableEntry.teacher_id)
            .outerjoin(ClassModel, ClassModel.id == TimetableEntry.class_id)
            .where(TimetableEntry.is_deleted == False)
        )

    async def _run_detailed(self, stmt) -> List[Dict[str, Any]]:
        stmt = stmt.order_by(_DAY_ORDER, TimetableEntry.start_time)
        result = await self.db.execute(stmt)
        entries = []
        for row in result.all():
            data = serialize_timetable(row[0])
            data.update(
                course_name=row.course_name,
                course_code=row.course_code,
                teacher_name=row.teacher_name,
                class_name=row.class_name,
            )
            entries.append(data)
        return entries

    async def for_teacher(self, teacher_id: int, semester: Optional[str] = None) -> List[Dict[str, Any]]:
        stmt = self._detailed_query().where(TimetableEntry.teacher_id == teacher_id)
        if semester:
            stmt = stmt.where(TimetableEntry.semester == semester)
        return await self._run_detailed(stmt)

    async def for_student(self, student_id: int, class_ids: List[int], semester: Optional[str] = None) -> List[Dict[str, Any]]:
        """Slots of the student's enrolled courses and of the classes they belong to"""
        enrolled = select(CourseEnrollment.course_id).where(
            CourseEnrollment.student_id == student_id,
            CourseEnrollment.is_deleted == False,
        )
        membership = TimetableEntry.course_id.in_(enrolled)
        if class_ids:
            membership = or_(membership, TimetableEntry.class_id.in_(class_ids))

        stmt = self._detailed_query().where(membership)
        if semester:
            stmt = stmt.where(TimetableEntry.semester == semester)
        return await self._run_detailed(stmt)

    async def for_department(self, department_id: int, semester: Optional[str] = None) -> List[Dict[str, Any]]:
        stmt = self._detailed_query().where(Course.department_id == department_id)
        if semester:
            stmt = stmt.where(TimetableEntry.semester == semester)
        return await self._run_detailed(stmt)

    async def teaches_course(self, teacher_id: int, course_id: int) -> bool:
        result = await self.db.execute(
            select(TimetableEntry.id).where(
                TimetableEntry.teacher_id == teacher_id,
                TimetableEntry.course_id == course_id,
                TimetableEntry.is_deleted == False,
            ).limit(1)
        )
        return result.first() is not None

    async def teaches_class_course(self, teacher_id: int, class_id: int, course_id: int) -> bool:
        result = await self.db.execute(
            select(TimetableEntry.id).where(
                TimetableEntry.teacher_id == teacher_id,
                TimetableEntry.class_id == class_id,
                TimetableEntry.course_id == course_id,
                TimetableEntry.is_deleted == False,
            ).limit(1)
        )
        return result.first() is not None

    async def find_conflicts(self, slot: Dict[str, Any], exclude_id: Optional[int] = None) -> List[TimetableEntry]:
        """Slots in the same semester and day whose times overlap and share a teacher, course or class"""
        stmt = select(TimetableEntry).where(
            TimetableEntry.is_deleted == False,
            TimetableEntry.semester == slot["semester"],
            TimetableEntry.day_of_week == slot["day_of_week"],
            TimetableEntry.start_time < slot["end_time"],
            TimetableEntry.end_time > slot["start_time"],
            or_(
                TimetableEntry.teacher_id == slot["teacher_id"],
                TimetableEntry.course_id == slot["course_id"],
                TimetableEntry.class_id == slot["class_id"],
            ),
        )
        if exclude_id:
            stmt = stmt.where(TimetableEntry.id != exclude_id)
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def _validated_slot(self, data: Dict[str, Any]) -> Dict[str, Any]:
        require_fields(data, ("course_id", "teacher_id", "class_id", "day_of_week", "start_time", "end_time", "semester"))

        slot = validate_fields({key: data.get(key) for key in SLOT_FIELDS}, TimetableSlotFields)
        if slot["day_of_week"] not in values(DayOfWeek):
            raise ValidationError("Invalid day of week", field="day_of_week")
        if slot["semester"] not in values(Semester):
            raise ValidationError("Invalid semester", field="semester")
        slot["start_time"] = parse_time(slot["start_time"], "start_time")
        slot["end_time"] = parse_time(slot["end_time"], "end_time")
        if slot["start_time"] >= slot["end_time"]:
            raise ValidationError("Start time must be before end time")

        await self._ensure_references(slot)
        return slot

    async def _ensure_references(self, slot: Dict[str, Any]):
        course = await self.db.get(Course, slot["course_id"])
        if not course or course.is_deleted:
            raise NotFoundError("Course")
        teacher = await self.db.get(User, slot["teacher_id"])
        if not teacher or teacher.is_deleted or teacher.role not in ("teacher", "hod"):
            raise NotFoundError("Teacher")
        class_obj = await self.db.get(ClassModel, slot["class_id"])
        if not class_obj or class_obj.is_deleted:
            raise NotFoundError("Class")

    async def add_slot(self, data: Dict[str, Any]) -> TimetableEntry:
        slot = await self._validated_slot(data)
        conflicts = await self.find_conflicts(slot)
        if conflicts:
            raise ConflictError(
                "Timetable conflict detected",
                conflicts=[serialize_timetable(entry) for entry in conflicts],
            )
        slot["status"] = ApprovalStatus.PENDING.value
        return await self.create(slot)

    async def update_slot(self, data: Dict[str, Any]) -> TimetableEntry:
        if not data.get("id"):
            raise ValidationError("Timetable slot id is required", field="id")
        entry = await self.get(parse_id(data["id"]))
        if not entry:
            raise NotFoundError("Timetable slot")

        merged = serialize_timetable(entry)
        merged.update({key: value for key, value in data.items() if key in SLOT_FIELDS})
        slot = await self._validated_slot(merged)
        conflicts = await self.find_conflicts(slot, exclude_id=entry.id)
        if conflicts:
            raise ConflictError(
                "Timetable conflict detected",
                conflicts=[serialize_timetable(c) for c in conflicts],
            )

        for key, value in slot.items():
            setattr(entry, key, value)
        await self.db.commit()
        await self.db.refresh(entry)
        return entry

    async def delete_slot(self, data: Dict[str, Any]) -> int:
        if not data.get("id"):
            raise ValidationError("Timetable slot id is required", field="id")
        slot_id = parse_id(data["id"])
        if not await self.soft_delete(slot_id):
            raise NotFoundError("Timetable slot")
        return slot_id

    async def set_status(self, department_id: int, timetable_ids: List[int], approve: bool) -> List[int]:
        """Approve or reject slots whose course belongs to the department"""
        result = await self.db.execute(
            select(TimetableEntry)
            .join(Course, Course.id == TimetableEntry.course_id)
            .where(
                TimetableEntry.id.in_(timetable_ids),
                TimetableEntry.is_deleted == False,
                Course.department_id == department_id,
            )
        )
        entries = result.scalars().all()
        if not entries:
            raise NotFoundError("Timetable slot", "No timetable entries found in your department")

        status = ApprovalStatus.APPROVED.value if approve else ApprovalStatus.REJECTED.value
        for entry in entries:
            entry.status = status
        await self.db.commit()
        return [entry.id for entry in entries]
