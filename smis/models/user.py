from sqlalchemy import Column, String, Integer, Boolean, DateTime, ForeignKey, JSON
from .base import Base


class User(Base):
    """Staff account: admin, teacher, hod or finance."""
    __tablename__ = "users"

    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, index=True)

    department_id = Column(Integer, ForeignKey("departments.id"), nullable=True, index=True)
    staff_id = Column(String(50), unique=True, nullable=True)
    phone = Column(String(20))
    qualifications = Column(String(255))
    subjects = Column(JSON, default=list)

    is_active = Column(Boolean, default=True, nullable=False)
    last_login = Column(DateTime(timezone=True))

    reset_token = Column(String(128), index=True)
    reset_token_expiry = Column(DateTime)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
