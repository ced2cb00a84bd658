from sqlalchemy import Column, String, Integer, Text, JSON
from .base import Base


class ActivityLog(Base):
    __tablename__ = "activity_logs"

    # Either a users.id or a students.id depending on actor_type
    user_id = Column(Integer, nullable=True, index=True)
    actor_type = Column(String(10), default="staff", nullable=False)

    action = Column(String(100), nullable=False, index=True)
    entity_type = Column(String(50), index=True)
    entity_id = Column(Integer)
    description = Column(Text, nullable=False)

    # "metadata" is reserved on declarative classes
    details = Column("metadata", JSON)
    ip_address = Column(String(45))
    user_agent = Column(String(255))
