# smis/services/hod_service.py
"""Head of department: staff, courses, classes, approvals and reports."""
from datetime import date
from typing import Any, Dict, List, Optional
import logging

from sqlalchemy import select, func, case
from sqlalchemy.ext.asyncio import AsyncSession

from .activity_service import ActivityService
from .class_service import ClassService
from .course_service import CourseService
from .timetable_service import TimetableService
from ..core.performance_monitor import monitor_performance
from ..core.exceptions import NotFoundError, ValidationError
from ..models.attendance import Attendance
from ..models.course import Course
from ..models.department import Department
from ..models.grade import Grade
from ..models.student import Student
from ..models.timetable import TimetableEntry
from ..models.user import User
from ..utils.constants import ApprovalStatus, UserRole
from ..utils.serializers import serialize_course, serialize_department, serialize_student, serialize_user

logger = logging.getLogger(__name__)

COURSE_ACTIONS = ("add", "edit", "delete")
REPORT_TYPES = ("attendance", "grades")


class HODService:
    def __init__(self, db: AsyncSession, department_id: int, hod_id: int):
        self.db = db
        self.department_id = department_id
        self.hod_id = hod_id
        self.activity = ActivityService(db)
        self.courses = CourseService(db)
        self.classes = ClassService(db)
        self.timetable = TimetableService(db)

    async def _log(self, action: str, entity_type: str, entity_id: Optional[int], description: str, **metadata):
        await self.activity.log_activity(
            user_id=self.hod_id,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            description=description,
            metadata=metadata or None,
        )

    async def get_profile(self) -> Dict[str, Any]:
        hod = await self.db.get(User, self.hod_id)
        department = await self.db.get(Department, self.department_id)
        data = serialize_user(hod)
        data["department"] = serialize_department(department) if department else None
        return data

    async def get_teachers(self) -> List[Dict[str, Any]]:
        result = await self.db.execute(
            select(User).where(
                User.department_id == self.department_id,
                User.role.in_((UserRole.TEACHER.value, UserRole.HOD.value)),
                User.is_deleted == False,
            ).order_by(User.last_name, User.first_name)
        )
        return [serialize_user(u) for u in result.scalars().all()]

    async def get_teacher_departments(self, teacher_id: int) -> List[Dict[str, Any]]:
        """Departments a teacher works in: their own plus those of the courses they teach"""
        teacher = await self.db.get(User, teacher_id)
        if not teacher or teacher.is_deleted or teacher.role not in (UserRole.TEACHER.value, UserRole.HOD.value):
            raise NotFoundError("Teacher")

        department_ids = {teacher.department_id} if teacher.department_id else set()
        taught = await self.db.execute(
            select(Course.department_id)
            .join(TimetableEntry, TimetableEntry.course_id == Course.id)
            .where(TimetableEntry.teacher_id == teacher_id, TimetableEntry.is_deleted == False)
            .distinct()
        )
        department_ids.update(taught.scalars().all())
        if not department_ids:
            return []

        result = await self.db.execute(
            select(Department).where(Department.id.in_(department_ids), Department.is_deleted == False).order_by(Department.name)
        )
        return [serialize_department(d) for d in result.scalars().all()]

    async def get_courses(self) -> List[Dict[str, Any]]:
        return [serialize_course(c) for c in await self.courses.list_for_department(self.department_id)]

    async def approve_activity(self, activity_type: str, activity_id: int, approve: bool) -> Dict[str, Any]:
        """Approve or reject a grade or attendance record of a department course"""
        if activity_type == "grade":
            model, field = Grade, "status"
        elif activity_type == "attendance":
            model, field = Attendance, "approval_status"
        else:
            raise ValidationError("Invalid activity type", field="activity_type")

        result = await self.db.execute(
            select(model)
            .join(Course, Course.id == model.course_id)
            .where(
                model.id == activity_id,
                model.is_deleted == False,
                Course.department_id == self.department_id,
            )
        )
        record = result.scalar_one_or_none()
        if not record:
            raise NotFoundError("Activity", "Activity not found in your department")

        status = ApprovalStatus.APPROVED.value if approve else ApprovalStatus.REJECTED.value
        setattr(record, field, status)
        await self.db.commit()
        await self._log(
            f"{activity_type}_{status}", activity_type, record.id,
            f"{activity_type.capitalize()} {record.id} {status}",
        )
        return {"activity_type": activity_type, "activity_id": record.id, "status": status}

    @monitor_performance("hod.generate_report")
    async def generate_report(self, report_type: str, semester: Optional[str] = None,
                              year: Optional[int] = None) -> Dict[str, Any]:
        if report_type not in REPORT_TYPES:
            raise ValidationError("Invalid report type", field="report_type")

        if report_type == "attendance":
            present = func.sum(case((Attendance.status == "present", 1), else_=0))
            join_on = (Attendance.course_id == Course.id) & (Attendance.is_deleted == False)
            if year:
                join_on = join_on & (Attendance.date >= date(year, 1, 1)) & (Attendance.date <= date(year, 12, 31))
            stmt = (
                select(
                    Course.id, Course.name, Course.course_code,
                    func.count(Attendance.id).label("total"),
                    func.coalesce(present, 0).label("present"),
                )
                .outerjoin(Attendance, join_on)
                .where(Course.department_id == self.department_id, Course.is_deleted == False)
                .group_by(Course.id, Course.name, Course.course_code)
                .order_by(Course.name)
            )
            if semester:
                stmt = stmt.where(Course.semester == semester)
            rows = (await self.db.execute(stmt)).all()
            report = [
                {
                    "course_id": row.id,
                    "course_name": row.name,
                    "course_code": row.course_code,
                    "total_records": row.total,
                    "present_count": int(row.present or 0),
                    "attendance_percentage": round(int(row.present or 0) / row.total * 100, 2) if row.total else 0.0,
                }
                for row in rows
            ]
        else:
            stmt = (
                select(Course.id, Course.name, Course.course_code, Grade.grade, func.count(Grade.id).label("record_count"))
                .join(Grade, Grade.course_id == Course.id)
                .where(
                    Course.department_id == self.department_id,
                    Course.is_deleted == False,
                    Grade.is_deleted == False,
                )
                .group_by(Course.id, Course.name, Course.course_code, Grade.grade)
                .order_by(Course.name, Grade.grade)
            )
            if semester:
                stmt = stmt.where(Grade.semester == semester)
            if year:
                stmt = stmt.where(Grade.year == year)
            rows = (await self.db.execute(stmt)).all()
            report = [
                {
                    "course_id": row.id,
                    "course_name": row.name,
                    "course_code": row.course_code,
                    "grade": row.grade,
                    "count": row.record_count,
                }
                for row in rows
            ]

        return {"report_type": report_type, "department_id": self.department_id, "report": report}

    async def manage_course(self, action: str, course_data: Dict[str, Any]) -> Dict[str, Any]:
        if action not in COURSE_ACTIONS:
            raise ValidationError("Invalid action", field="action")

        if action == "add":
            course = await self.courses.add_department_course(self.department_id, course_data)
        elif action == "edit":
            course = await self.courses.edit_department_course(self.department_id, course_data)
        else:
            course = await self.courses.delete_department_course(self.department_id, course_data)

        await self._log(f"course_{action}", "course", course.id, f"Course {course.course_code} {action}")
        return serialize_course(course)

    async def create_class(self, data: Dict[str, Any]):
        class_obj = await self.classes.create_class(self.department_id, data, created_by=self.hod_id)
        await self._log("class_created", "class", class_obj.id, f"Created class {class_obj.name}")
        return class_obj

    async def add_class_students(self, class_id: int, student_ids: List[int]) -> Dict[str, Any]:
        result = await self.classes.add_students(self.department_id, class_id, student_ids)
        await self._log("class_students_added", "class", class_id, f"Added {len(result['added'])} students to class {class_id}")
        return result

    async def add_class_courses(self, class_id: int, course_ids: List[int]) -> Dict[str, Any]:
        result = await self.classes.add_courses(self.department_id, class_id, course_ids)
        await self._log("class_courses_added", "class", class_id, f"Added {len(result['added'])} courses to class {class_id}")
        return result

    async def class_students(self, class_id: int) -> List[Dict[str, Any]]:
        class_obj = await self.classes.get_or_404(class_id, self.department_id)
        return [serialize_student(s) for s in await self.classes.roster_students(class_obj)]

    async def _teachers(self, teacher_ids: List[int]) -> List[User]:
        result = await self.db.execute(
            select(User).where(
                User.id.in_(teacher_ids),
                User.role == UserRole.TEACHER.value,
                User.is_deleted == False,
            )
        )
        teachers = result.scalars().all()
        missing = set(teacher_ids) - {t.id for t in teachers}
        if missing:
            raise NotFoundError("Teacher", f"Teachers not found: {', '.join(map(str, sorted(missing)))}")
        return teachers

    async def add_teachers(self, teacher_ids: List[int]) -> List[int]:
        teachers = await self._teachers(teacher_ids)
        for teacher in teachers:
            teacher.department_id = self.department_id
        await self.db.commit()
        await self._log("department_teachers_added", "department", self.department_id,
                        f"Added {len(teachers)} teachers to department", teacher_ids=teacher_ids)
        return [t.id for t in teachers]

    async def remove_teachers(self, teacher_ids: List[int]) -> List[int]:
        teachers = await self._teachers(teacher_ids)
        outside = [t.id for t in teachers if t.department_id != self.department_id]
        if outside:
            raise ValidationError(f"Teachers not in your department: {', '.join(map(str, outside))}")
        for teacher in teachers:
            teacher.department_id = None
        await self.db.commit()
        await self._log("department_teachers_removed", "department", self.department_id,
                        f"Removed {len(teachers)} teachers from department", teacher_ids=teacher_ids)
        return [t.id for t in teachers]

    async def approve_timetable(self, timetable_ids: List[int], approve: bool) -> List[int]:
        updated = await self.timetable.set_status(self.department_id, timetable_ids, approve)
        await self._log("timetable_approved" if approve else "timetable_rejected", "timetable", None,
                        f"{'Approved' if approve else 'Rejected'} {len(updated)} timetable entries", timetable_ids=updated)
        return updated

    async def get_timetable(self, semester: Optional[str] = None) -> List[Dict[str, Any]]:
        return await self.timetable.for_department(self.department_id, semester)

    @monitor_performance("hod.get_stats")
    async def get_stats(self) -> Dict[str, Any]:
        present = case((Attendance.status == "present", 100.0), else_=0.0)
        attendance_row = (await self.db.execute(
            select(func.count(Attendance.id).label("total"), func.avg(present).label("average"))
            .join(Course, Course.id == Attendance.course_id)
            .where(Course.department_id == self.department_id, Attendance.is_deleted == False)
        )).one()

        grade_rows = (await self.db.execute(
            select(Grade.grade, func.count(Grade.id).label("record_count"))
            .join(Course, Course.id == Grade.course_id)
            .where(Course.department_id == self.department_id, Grade.is_deleted == False)
            .group_by(Grade.grade)
            .order_by(Grade.grade)
        )).all()

        course_count = await self.courses.get_active_count(department_id=self.department_id)
        teacher_count = (await self.db.execute(
            select(func.count(User.id)).where(
                User.department_id == self.department_id,
                User.role.in_((UserRole.TEACHER.value, UserRole.HOD.value)),
                User.is_deleted == False,
            )
        )).scalar()
        student_count = (await self.db.execute(
            select(func.count(Student.id)).where(Student.department_id == self.department_id, Student.is_deleted == False)
        )).scalar()

        return {
            "attendance": {
                "total_records": attendance_row.total,
                "average_attendance_percentage": round(float(attendance_row.average or 0), 2),
            },
            "grades": [{"grade": row.grade, "count": row.record_count} for row in grade_rows],
            "courses": course_count,
            "teachers": teacher_count,
            "students": student_count,
        }
