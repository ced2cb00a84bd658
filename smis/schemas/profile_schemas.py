# smis/schemas/profile_schemas.py
"""Partial profile updates. Omitted fields stay untouched; required columns refuse null."""
import datetime as dt
from typing import List, Optional
from pydantic import BaseModel, EmailStr, Field


class TeacherProfileUpdate(BaseModel):
    first_name: str = Field(default=None, min_length=1, max_length=100)
    last_name: str = Field(default=None, min_length=1, max_length=100)
    email: EmailStr = None
    phone: Optional[str] = Field(default=None, max_length=20)
    qualifications: Optional[str] = Field(default=None, max_length=255)
    subjects: Optional[List[str]] = None


class StudentProfileUpdate(BaseModel):
    first_name: str = Field(default=None, min_length=1, max_length=100)
    last_name: str = Field(default=None, min_length=1, max_length=100)
    email: EmailStr = None
    phone: Optional[str] = Field(default=None, max_length=20)
    address: Optional[str] = None
    gender: Optional[str] = Field(default=None, max_length=10)
    date_of_birth: Optional[dt.date] = None
    enrollment_year: Optional[int] = Field(default=None, ge=1900)
    current_year: Optional[int] = Field(default=None, ge=1)
    enrollment_date: Optional[dt.date] = None
    graduation_date: Optional[dt.date] = None
    status: str = None
