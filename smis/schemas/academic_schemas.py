# smis/schemas/academic_schemas.py
"""Pydantic schemas for attendance, grades, classes and courses."""
import datetime as dt
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class AttendanceRecordIn(BaseModel):
    student_id: int
    # Checked per record so one bad status does not reject the batch
    status: str
    notes: Optional[str] = None


class AttendanceSubmit(BaseModel):
    course_id: int
    date: dt.date
    attendance: List[AttendanceRecordIn] = Field(..., min_length=1)


class GradeEntry(BaseModel):
    student_id: int
    grade: str
    semester: str
    year: Optional[int] = None
    score: Optional[float] = Field(default=None, ge=0)
    max_score: Optional[float] = Field(default=None, gt=0)
    assessment_type: Optional[str] = "final"
    comments: Optional[str] = None
    date_given: Optional[dt.date] = None


class GradeSubmit(BaseModel):
    course_id: int
    grades: List[GradeEntry] = Field(..., min_length=1)


class ActivityApproval(BaseModel):
    activity_type: str
    activity_id: int
    approve: bool


class GradeUpdate(BaseModel):
    grade: str = Field(default=None, min_length=1, max_length=2)
    comments: Optional[str] = None
    score: Optional[float] = Field(default=None, ge=0)
    max_score: Optional[float] = Field(default=None, gt=0)


class CourseFields(BaseModel):
    """Editable course columns as sent inside course_data"""
    course_code: str = Field(default=None, min_length=1, max_length=20)
    name: str = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    credits: int = Field(default=None, ge=0)
    semester: Optional[str] = Field(default=None, max_length=20)


class CourseManage(BaseModel):
    action: str
    course_data: Dict[str, Any] = Field(default_factory=dict)


class ClassCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    academic_year: str = Field(..., min_length=1, max_length=20)
    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None
    students: List[int] = Field(default_factory=list)
    courses: List[int] = Field(default_factory=list)


class ClassStudentsAdd(BaseModel):
    class_id: int
    student_ids: List[int] = Field(..., min_length=1)


class ClassCoursesAdd(BaseModel):
    class_id: int
    course_ids: List[int] = Field(..., min_length=1)


class DepartmentTeachers(BaseModel):
    teacher_ids: List[int] = Field(..., min_length=1)


class TimetableApproval(BaseModel):
    timetable_ids: List[int] = Field(..., min_length=1)
    approve: bool = True


class ReportFilters(BaseModel):
    semester: Optional[str] = None
    year: Optional[int] = Field(default=None, ge=1900)
