from sqlalchemy import Column, String, Integer, Time, ForeignKey, Index
from .base import Base


class TimetableEntry(Base):
    __tablename__ = "timetable"
    __table_args__ = (
        Index("ix_timetable_slot", "semester", "day_of_week"),
    )

    course_id = Column(Integer, ForeignKey("courses.id"), nullable=False, index=True)
    teacher_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    class_id = Column(Integer, ForeignKey("classes.id"), nullable=False, index=True)

    day_of_week = Column(String(10), nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    room = Column(String(50))
    semester = Column(String(20), nullable=False)
    academic_year = Column(String(20))
    status = Column(String(20), default="pending", nullable=False)
