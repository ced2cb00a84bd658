# smis/services/teacher_service.py
"""Teacher portal: taught courses, attendance marking and grade entry."""
from datetime import date
from typing import Any, Dict, List, Optional
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .activity_service import ActivityService
from .auth_service import AuthService
from .base_service import BaseService
from .class_service import ClassService
from .timetable_service import TimetableService
from ..core.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from ..models.attendance import Attendance
from ..models.class_model import ClassModel
from ..models.course import Course, CourseEnrollment
from ..models.department import Department
from ..models.grade import Grade
from ..models.student import Student
from ..models.timetable import TimetableEntry
from ..models.user import User
from ..schemas.academic_schemas import GradeUpdate
from ..schemas.profile_schemas import TeacherProfileUpdate
from ..utils.constants import LETTER_GRADES, AttendanceStatus, values
from ..utils.serializers import serialize_grade, serialize_student, serialize_user
from ..utils.validators import check_allowed_fields, validate_fields

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ("first_name", "last_name", "email", "phone", "qualifications", "subjects")
GRADE_EDIT_FIELDS = ("grade", "comments", "score", "max_score")


class TeacherService(BaseService[User]):
    def __init__(self, db: AsyncSession):
        super().__init__(User, db)
        self.timetable = TimetableService(db)
        self.activity = ActivityService(db)

    async def get_or_404(self, teacher_id: int) -> User:
        teacher = await self.get(teacher_id)
        if not teacher:
            raise NotFoundError("Teacher")
        return teacher

    async def get_profile(self, teacher_id: int) -> Dict[str, Any]:
        teacher = await self.get_or_404(teacher_id)
        data = serialize_user(teacher)
        if teacher.department_id:
            department = await self.db.get(Department, teacher.department_id)
            data["department_name"] = department.name if department else None
        return data

    async def update_profile(self, teacher_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        teacher = await self.get_or_404(teacher_id)
        check_allowed_fields(data, PROFILE_FIELDS)

        updates = validate_fields(data, TeacherProfileUpdate)
        if "email" in updates:
            updates["email"] = updates["email"].strip().lower()
            if await AuthService(self.db).email_taken(updates["email"], exclude_staff_id=teacher.id):
                raise ValidationError("Email is invalid or already in use", field="email")

        for key, value in updates.items():
            setattr(teacher, key, value)
        await self.db.commit()
        await self.db.refresh(teacher)
        await self.activity.log_activity(
            user_id=teacher.id,
            action="profile_updated",
            entity_type="user",
            entity_id=teacher.id,
            description=f"{teacher.full_name} updated their profile",
            metadata={"fields": sorted(updates)},
        )
        return serialize_user(teacher)

    async def get_classes(self, teacher_id: int) -> List[Dict[str, Any]]:
        """Distinct courses the teacher is scheduled for"""
        result = await self.db.execute(
            select(Course, Department.name.label("department_name"))
            .join(TimetableEntry, TimetableEntry.course_id == Course.id)
            .outerjoin(Department, Department.id == Course.department_id)
            .where(
                TimetableEntry.teacher_id == teacher_id,
                TimetableEntry.is_deleted == False,
                Course.is_deleted == False,
            )
            .distinct()
            .order_by(Course.name)
        )
        return [
            {
                "id": row[0].id,
                "course_code": row[0].course_code,
                "name": row[0].name,
                "credits": row[0].credits,
                "semester": row[0].semester,
                "department_id": row[0].department_id,
                "department_name": row.department_name,
            }
            for row in result.all()
        ]

    async def _ensure_teaches(self, teacher_id: int, course_id: int, action: str):
        if not await self.timetable.teaches_course(teacher_id, course_id):
            raise PermissionDeniedError(f"Not authorized to {action} for this course")

    async def mark_attendance(self, teacher_id: int, course_id: int, on_date: date,
                              records: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Upsert one attendance row per record; invalid records are reported, not fatal"""
        await self._ensure_teaches(teacher_id, course_id, "mark attendance")

        results = []
        for record in records:
            student_id = record.get("student_id")
            status = record.get("status")
            if status not in values(AttendanceStatus):
                results.append({"student_id": student_id, "success": False, "message": "Invalid status"})
                continue
            student = await self.db.get(Student, student_id)
            if not student or student.is_deleted:
                results.append({"student_id": student_id, "success": False, "message": "Student not found"})
                continue

            existing = await self.db.execute(
                select(Attendance).where(
                    Attendance.student_id == student_id,
                    Attendance.course_id == course_id,
                    Attendance.date == on_date,
                )
            )
            attendance = existing.scalar_one_or_none()
            if attendance:
                attendance.status = status
                attendance.notes = record.get("notes")
                attendance.teacher_id = teacher_id
                attendance.is_deleted = False
            else:
                attendance = Attendance(
                    student_id=student_id,
                    course_id=course_id,
                    teacher_id=teacher_id,
                    date=on_date,
                    status=status,
                    notes=record.get("notes"),
                )
                self.db.add(attendance)
            await self.db.flush()
            results.append({"student_id": student_id, "success": True, "attendance_id": attendance.id})

        await self.db.commit()
        await self.activity.log_activity(
            user_id=teacher_id,
            action="attendance_marked",
            entity_type="attendance",
            entity_id=course_id,
            description=f"Marked attendance for course {course_id} on {on_date.isoformat()}",
            metadata={"records": len(records), "saved": sum(1 for r in results if r["success"])},
        )
        return results

    async def enter_grades(self, teacher_id: int, course_id: int, entries: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Validate every entry first, then insert them together"""
        await self._ensure_teaches(teacher_id, course_id, "enter grades")

        for entry in entries:
            grade = (entry.get("grade") or "").strip().upper()
            if grade not in LETTER_GRADES:
                raise ValidationError(f"Invalid grade for student {entry.get('student_id')}", field="grade")
            if not (entry.get("semester") or "").strip():
                raise ValidationError(f"Invalid semester for student {entry.get('student_id')}", field="semester")
            student = await self.db.get(Student, entry.get("student_id"))
            if not student or student.is_deleted:
                raise NotFoundError("Student", f"Student {entry.get('student_id')} not found")

        created = []
        for entry in entries:
            grade = Grade(
                student_id=entry["student_id"],
                course_id=course_id,
                teacher_id=teacher_id,
                grade=entry["grade"].strip().upper(),
                score=entry.get("score"),
                max_score=entry.get("max_score"),
                assessment_type=entry.get("assessment_type") or "final",
                semester=entry["semester"].strip(),
                year=entry.get("year") or date.today().year,
                date_given=entry.get("date_given") or date.today(),
                comments=entry.get("comments"),
            )
            self.db.add(grade)
            created.append(grade)
        await self.db.commit()

        await self.activity.log_activity(
            user_id=teacher_id,
            action="grades_entered",
            entity_type="grade",
            entity_id=course_id,
            description=f"Entered {len(created)} grades for course {course_id}",
        )
        return [{"student_id": g.student_id, "success": True, "grade_id": g.id} for g in created]

    async def _owned_grade(self, teacher_id: int, grade_id: int) -> Grade:
        grade = await self.db.get(Grade, grade_id)
        if not grade or grade.is_deleted:
            raise NotFoundError("Grade")
        if grade.teacher_id != teacher_id:
            raise PermissionDeniedError("You can only modify grades you assigned")
        if not await self.timetable.teaches_course(teacher_id, grade.course_id):
            raise PermissionDeniedError("Not authorized to modify grades for this course")
        return grade

    async def update_grade(self, teacher_id: int, grade_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        check_allowed_fields(data, GRADE_EDIT_FIELDS)
        if not data:
            raise ValidationError("No fields to update")
        data = validate_fields(data, GradeUpdate)
        grade = await self._owned_grade(teacher_id, grade_id)

        if "grade" in data:
            letter = data["grade"].strip().upper()
            if letter not in LETTER_GRADES:
                raise ValidationError("Invalid grade", field="grade")
            data["grade"] = letter

        for key, value in data.items():
            setattr(grade, key, value)
        await self.db.commit()
        await self.db.refresh(grade)
        await self.activity.log_activity(
            user_id=teacher_id,
            action="grade_updated",
            entity_type="grade",
            entity_id=grade.id,
            description=f"Updated grade {grade.id}",
            metadata={"fields": sorted(data)},
        )
        return serialize_grade(grade)

    async def delete_grade(self, teacher_id: int, grade_id: int):
        grade = await self._owned_grade(teacher_id, grade_id)
        grade.is_deleted = True
        await self.db.commit()
        await self.activity.log_activity(
            user_id=teacher_id,
            action="grade_deleted",
            entity_type="grade",
            entity_id=grade.id,
            description=f"Deleted grade {grade.id}",
        )

    async def class_course_grades(self, teacher_id: int, class_id: int, course_id: int) -> Dict[str, Any]:
        classes = ClassService(self.db)
        class_obj = await classes.get_or_404(class_id)
        if not await classes.has_course(class_id, course_id):
            raise NotFoundError("Course", "Course is not part of this class")
        if not await self.timetable.teaches_class_course(teacher_id, class_id, course_id):
            raise PermissionDeniedError("Not authorized to view grades for this class")

        roster = class_obj.roster()
        grades = []
        if roster:
            result = await self.db.execute(
                select(Grade, (Student.first_name + " " + Student.last_name).label("student_name"))
                .join(Student, Student.id == Grade.student_id)
                .where(
                    Grade.course_id == course_id,
                    Grade.teacher_id == teacher_id,
                    Grade.student_id.in_(roster),
                    Grade.is_deleted == False,
                )
                .order_by(Student.last_name, Grade.date_given.desc())
            )
            for row in result.all():
                data = serialize_grade(row[0])
                data["student_name"] = row.student_name
                grades.append(data)
        return {"class_id": class_id, "course_id": course_id, "grades": grades}

    async def get_timetable(self, teacher_id: int, semester: Optional[str] = None) -> List[Dict[str, Any]]:
        return await self.timetable.for_teacher(teacher_id, semester)

    async def get_students(self, teacher_id: int, course_id: Optional[int] = None) -> List[Dict[str, Any]]:
        """Students of the classes and course enrollments the teacher is scheduled for"""
        stmt = select(TimetableEntry.class_id, TimetableEntry.course_id).where(
            TimetableEntry.teacher_id == teacher_id,
            TimetableEntry.is_deleted == False,
        )
        if course_id is not None:
            if not await self.timetable.teaches_course(teacher_id, course_id):
                raise PermissionDeniedError("Not authorized to view students for this course")
            stmt = stmt.where(TimetableEntry.course_id == course_id)
        slots = (await self.db.execute(stmt)).all()
        if not slots:
            return []

        class_ids = {slot.class_id for slot in slots}
        course_ids = {slot.course_id for slot in slots}

        student_ids = set()
        classes = await self.db.execute(
            select(ClassModel).where(ClassModel.id.in_(class_ids), ClassModel.is_deleted == False)
        )
        for class_obj in classes.scalars().all():
            student_ids.update(class_obj.roster())
        enrolled = await self.db.execute(
            select(CourseEnrollment.student_id).where(
                CourseEnrollment.course_id.in_(course_ids),
                CourseEnrollment.is_deleted == False,
            )
        )
        student_ids.update(enrolled.scalars().all())
        if not student_ids:
            return []

        result = await self.db.execute(
            select(Student).where(Student.id.in_(student_ids), Student.is_deleted == False)
            .order_by(Student.last_name, Student.first_name)
        )
        return [serialize_student(s) for s in result.scalars().all()]
