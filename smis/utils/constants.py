# smis/utils/constants.py
"""Shared enumerations and lookup tables."""
import enum


class UserRole(str, enum.Enum):
    STUDENT = "student"
    TEACHER = "teacher"
    HOD = "hod"
    FINANCE = "finance"
    ADMIN = "admin"


class UserType(str, enum.Enum):
    STAFF = "staff"
    STUDENT = "student"


class StudentStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    GRADUATED = "graduated"
    SUSPENDED = "suspended"


class AttendanceStatus(str, enum.Enum):
    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"


class ApprovalStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class FeeType(str, enum.Enum):
    TUITION = "tuition"
    LIBRARY = "library"
    LABORATORY = "laboratory"
    EXAMINATION = "examination"
    SPORTS = "sports"
    TRANSPORT = "transport"
    OTHER = "other"


class FeeStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"
    OVERDUE = "overdue"


class DayOfWeek(str, enum.Enum):
    MONDAY = "Monday"
    TUESDAY = "Tuesday"
    WEDNESDAY = "Wednesday"
    THURSDAY = "Thursday"
    FRIDAY = "Friday"
    SATURDAY = "Saturday"
    SUNDAY = "Sunday"


class Semester(str, enum.Enum):
    FALL = "Fall"
    SPRING = "Spring"
    SUMMER = "Summer"


class EventType(str, enum.Enum):
    HOLIDAY = "holiday"
    EXAM = "exam"
    REGISTRATION = "registration"
    ORIENTATION = "orientation"
    GRADUATION = "graduation"
    OTHER = "other"


class NotificationType(str, enum.Enum):
    GRADE_UPDATE = "grade_update"
    ATTENDANCE_ALERT = "attendance_alert"
    FEE_REMINDER = "fee_reminder"
    TIMETABLE_UPDATE = "timetable_update"
    ANNOUNCEMENT = "announcement"
    GENERAL = "general"


GRADE_POINTS = {
    "A": 4.0,
    "A-": 3.7,
    "B+": 3.3,
    "B": 3.0,
    "B-": 2.7,
    "C+": 2.3,
    "C": 2.0,
    "C-": 1.7,
    "D+": 1.3,
    "D": 1.0,
    "F": 0.0,
}

LETTER_GRADES = tuple(GRADE_POINTS)

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100

MIN_PASSWORD_LENGTH = 6


def values(enum_cls) -> list:
    return [member.value for member in enum_cls]
