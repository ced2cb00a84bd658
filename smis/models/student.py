from sqlalchemy import Column, String, Integer, Boolean, Date, DateTime, Text, ForeignKey
from .base import Base


class Student(Base):
    __tablename__ = "students"

    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    student_number = Column(String(50), unique=True, nullable=True)

    department_id = Column(Integer, ForeignKey("departments.id"), nullable=False, index=True)
    phone = Column(String(20))
    address = Column(Text)
    date_of_birth = Column(Date)
    gender = Column(String(10))

    # Academic progress
    enrollment_year = Column(Integer)
    current_year = Column(Integer, default=1)
    enrollment_date = Column(Date)
    graduation_date = Column(Date)
    status = Column(String(20), default="active", nullable=False, index=True)

    is_active = Column(Boolean, default=True, nullable=False)
    last_login = Column(DateTime(timezone=True))

    reset_token = Column(String(128), index=True)
    reset_token_expiry = Column(DateTime)

    @property
    def role(self) -> str:
        return "student"

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
