from sqlalchemy import Column, String, Integer, Boolean, Date, ForeignKey, JSON, UniqueConstraint
from .base import Base


class ClassModel(Base):
    __tablename__ = "classes"

    name = Column(String(100), nullable=False)
    academic_year = Column(String(20), nullable=False)
    start_date = Column(Date)
    end_date = Column(Date)
    department_id = Column(Integer, ForeignKey("departments.id"), nullable=False, index=True)

    # Roster of student ids; replace the list rather than mutating it in place
    students = Column(JSON, default=list, nullable=False)

    is_active = Column(Boolean, default=True, nullable=False)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)

    def roster(self) -> list:
        return list(self.students or [])


class ClassCourse(Base):
    __tablename__ = "class_courses"
    __table_args__ = (
        UniqueConstraint("class_id", "course_id", name="uq_class_course"),
    )

    class_id = Column(Integer, ForeignKey("classes.id"), nullable=False, index=True)
    course_id = Column(Integer, ForeignKey("courses.id"), nullable=False, index=True)
