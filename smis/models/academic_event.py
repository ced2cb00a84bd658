from sqlalchemy import Column, String, Integer, Date, Text, ForeignKey
from .base import Base


class AcademicEvent(Base):
    __tablename__ = "academic_calendar"

    event_name = Column(String(200), nullable=False)
    event_date = Column(Date, nullable=False, index=True)
    event_type = Column(String(20), nullable=False)
    description = Column(Text)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)
