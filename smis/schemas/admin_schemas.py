# smis/schemas/admin_schemas.py
"""Pydantic schemas for administration endpoints."""
from datetime import date
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, EmailStr, Field, model_validator

from ..utils.constants import UserRole, EventType, MIN_PASSWORD_LENGTH


class UserCreate(BaseModel):
    """Creates a staff user, or a student when role is "student"."""
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH)
    role: UserRole
    department_id: Optional[int] = None
    phone: Optional[str] = Field(default=None, max_length=20)
    staff_id: Optional[str] = Field(default=None, max_length=50)
    qualifications: Optional[str] = Field(default=None, max_length=255)
    subjects: Optional[List[str]] = None

    # Student-only fields
    student_number: Optional[str] = Field(default=None, max_length=50)
    enrollment_year: Optional[int] = Field(default=None, ge=1900)
    current_year: Optional[int] = Field(default=None, ge=1)
    enrollment_date: Optional[date] = None

    @model_validator(mode='after')
    def validate_student_department(self):
        if self.role == UserRole.STUDENT and not self.department_id:
            raise ValueError('department_id is required for students')
        return self


class UserUpdate(BaseModel):
    first_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(default=None, min_length=MIN_PASSWORD_LENGTH)
    role: Optional[UserRole] = None
    department_id: Optional[int] = None
    phone: Optional[str] = Field(default=None, max_length=20)
    qualifications: Optional[str] = Field(default=None, max_length=255)
    subjects: Optional[List[str]] = None
    is_active: Optional[bool] = None


class DepartmentCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    code: str = Field(..., min_length=1, max_length=20)
    description: Optional[str] = None
    head_id: Optional[int] = None


class CalendarEventCreate(BaseModel):
    event_name: str = Field(..., min_length=1, max_length=200)
    event_date: date
    event_type: EventType
    description: Optional[str] = None


class TimetableAction(BaseModel):
    action: str
    timetable_data: Dict[str, Any] = Field(default_factory=dict)


class TimetableSlotFields(BaseModel):
    course_id: int = Field(..., ge=1)
    teacher_id: int = Field(..., ge=1)
    class_id: int = Field(..., ge=1)
    day_of_week: str
    start_time: Any
    end_time: Any
    semester: str
    room: Optional[str] = Field(default=None, max_length=50)
    academic_year: Optional[str] = Field(default=None, max_length=20)
