#!/usr/bin/env python3
"""Load a small sample school: departments, staff, students, courses, a class and its timetable.

Every account gets the password given on the command line (default: Password123!).
"""
import asyncio
import sys
from datetime import date, time, timedelta

from sqlalchemy import select

from smis.core.database import AsyncSessionLocal, close_db_connections
from smis.core.security import get_password_hash
from smis.models import (
    ClassCourse, ClassModel, Course, CourseEnrollment, Department, Fee, Student, TimetableEntry, User,
)
from smis.utils.constants import ApprovalStatus, FeeStatus, FeeType, UserRole

DEPARTMENTS = [
    ("Computer Science", "CS"),
    ("Mathematics", "MATH"),
]

COURSES = {
    "CS": [("CS101", "Introduction to Programming"), ("CS201", "Data Structures")],
    "MATH": [("MATH101", "Calculus I"), ("MATH201", "Linear Algebra")],
}


async def seed(password: str):
    password_hash = get_password_hash(password)

    async with AsyncSessionLocal() as session:
        if (await session.execute(select(Department.id).limit(1))).first():
            print("⚠️  Database already has departments, skipping seed")
            return

        departments = {}
        for name, code in DEPARTMENTS:
            department = Department(name=name, code=code, description=f"Department of {name}")
            session.add(department)
            departments[code] = department
        await session.flush()
        print(f"🏫 Created {len(departments)} departments")

        def staff(first, last, role, code=None):
            user = User(
                first_name=first,
                last_name=last,
                email=f"{first.lower()}.{last.lower()}@smis.local",
                password_hash=password_hash,
                role=role.value,
                department_id=departments[code].id if code else None,
            )
            session.add(user)
            return user

        staff("Ada", "Admin", UserRole.ADMIN)
        staff("Fiona", "Ledger", UserRole.FINANCE)
        hod = staff("Grace", "Hopper", UserRole.HOD, "CS")
        teacher = staff("Alan", "Turing", UserRole.TEACHER, "CS")
        staff("Emmy", "Noether", UserRole.HOD, "MATH")
        await session.flush()
        departments["CS"].head_id = hod.id

        courses = []
        for code, entries in COURSES.items():
            for course_code, name in entries:
                course = Course(course_code=course_code, name=name, credits=3, semester="Fall",
                                department_id=departments[code].id)
                session.add(course)
                courses.append(course)
        await session.flush()
        print(f"📚 Created {len(courses)} courses")

        students = []
        for i, (first, last) in enumerate([("Maya", "Patel"), ("Liam", "Chen"), ("Sofia", "Garcia")], start=1):
            student = Student(
                first_name=first,
                last_name=last,
                email=f"{first.lower()}.{last.lower()}@students.smis.local",
                password_hash=password_hash,
                student_number=f"S{date.today().year}{i:04d}",
                department_id=departments["CS"].id,
                enrollment_year=date.today().year,
                enrollment_date=date.today(),
            )
            session.add(student)
            students.append(student)
        await session.flush()
        print(f"🎓 Created {len(students)} students")

        cs_courses = [c for c in courses if c.department_id == departments["CS"].id]
        year = date.today().year
        cs_class = ClassModel(
            name="CS Year 1",
            academic_year=f"{year}-{year + 1}",
            department_id=departments["CS"].id,
            students=[s.id for s in students],
            created_by=hod.id,
        )
        session.add(cs_class)
        await session.flush()

        for course in cs_courses:
            session.add(ClassCourse(class_id=cs_class.id, course_id=course.id))
            for student in students:
                session.add(CourseEnrollment(student_id=student.id, course_id=course.id))

        for course, day, start in zip(cs_courses, ["Monday", "Wednesday"], [time(9), time(11)]):
            session.add(TimetableEntry(
                course_id=course.id,
                teacher_id=teacher.id,
                class_id=cs_class.id,
                day_of_week=day,
                start_time=start,
                end_time=start.replace(hour=start.hour + 1, minute=30),
                room="B-101",
                semester="Fall",
                academic_year=cs_class.academic_year,
                status=ApprovalStatus.APPROVED.value,
            ))

        for student in students:
            session.add(Fee(
                student_id=student.id,
                fee_type=FeeType.TUITION.value,
                amount=1500,
                description="Fall tuition",
                due_date=date.today() + timedelta(days=30),
                status=FeeStatus.PENDING.value,
            ))

        await session.commit()
        print("✅ Sample data loaded")


async def main(argv):
    try:
        await seed(argv[1] if len(argv) > 1 else "Password123!")
    finally:
        await close_db_connections()


if __name__ == "__main__":
    asyncio.run(main(sys.argv))
