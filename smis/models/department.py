from sqlalchemy import Column, String, Integer, Text
from .base import Base


class Department(Base):
    __tablename__ = "departments"

    name = Column(String(100), nullable=False)
    code = Column(String(20), unique=True, nullable=False, index=True)
    description = Column(Text)

    # users.id of the head of department; kept without a FK to avoid a cycle with users
    head_id = Column(Integer, nullable=True, index=True)
    status = Column(String(20), default="active", nullable=False)
