# smis/models/__init__.py
"""Import all models here, if needed for Alembic migration."""
from .base import Base

from .department import Department
from .user import User
from .student import Student
from .course import Course, CourseEnrollment
from .class_model import ClassModel, ClassCourse
from .timetable import TimetableEntry
from .attendance import Attendance
from .grade import Grade
from .fee import Fee
from .activity_log import ActivityLog
from .notification import Notification
from .academic_event import AcademicEvent

__all__ = [
    "Base",
    "Department",
    "User",
    "Student",
    "Course",
    "CourseEnrollment",
    "ClassModel",
    "ClassCourse",
    "TimetableEntry",
    "Attendance",
    "Grade",
    "Fee",
    "ActivityLog",
    "Notification",
    "AcademicEvent",
]
