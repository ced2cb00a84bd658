from sqlalchemy import Column, String, Integer, Date, Text, ForeignKey, UniqueConstraint
from .base import Base


class Attendance(Base):
    __tablename__ = "attendance"
    __table_args__ = (
        UniqueConstraint("student_id", "course_id", "date", name="uq_attendance_student_course_date"),
    )

    student_id = Column(Integer, ForeignKey("students.id"), nullable=False, index=True)
    course_id = Column(Integer, ForeignKey("courses.id"), nullable=False, index=True)
    teacher_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)

    date = Column(Date, nullable=False, index=True)
    status = Column(String(10), nullable=False)
    notes = Column(Text)
    approval_status = Column(String(20), default="pending", nullable=False)
