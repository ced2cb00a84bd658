from sqlalchemy import Column, String, Integer, Text, ForeignKey, UniqueConstraint
from .base import Base


class Course(Base):
    __tablename__ = "courses"

    course_code = Column(String(20), unique=True, nullable=False, index=True)
    name = Column(String(200), nullable=False)
    description = Column(Text)
    credits = Column(Integer, default=3, nullable=False)
    semester = Column(String(20))
    department_id = Column(Integer, ForeignKey("departments.id"), nullable=False, index=True)


class CourseEnrollment(Base):
    __tablename__ = "course_enrollments"
    __table_args__ = (
        UniqueConstraint("student_id", "course_id", name="uq_enrollment_student_course"),
    )

    student_id = Column(Integer, ForeignKey("students.id"), nullable=False, index=True)
    course_id = Column(Integer, ForeignKey("courses.id"), nullable=False, index=True)
    status = Column(String(20), default="enrolled", nullable=False)
