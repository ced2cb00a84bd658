from sqlalchemy import Column, String, Integer, Float, Date, Text, ForeignKey
from .base import Base


class Grade(Base):
    __tablename__ = "grades"

    student_id = Column(Integer, ForeignKey("students.id"), nullable=False, index=True)
    course_id = Column(Integer, ForeignKey("courses.id"), nullable=False, index=True)
    teacher_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)

    grade = Column(String(2), nullable=False)
    score = Column(Float)
    max_score = Column(Float)
    assessment_type = Column(String(50), default="final")
    semester = Column(String(20), nullable=False)
    year = Column(Integer)
    date_given = Column(Date)
    comments = Column(Text)
    status = Column(String(20), default="pending", nullable=False)
