from sqlalchemy import Column, String, Integer, Boolean, Text, JSON, Index
from .base import Base


class Notification(Base):
    __tablename__ = "notifications"
    __table_args__ = (
        Index("ix_notifications_recipient", "recipient_type", "user_id"),
    )

    sender_id = Column(Integer, nullable=True)
    user_id = Column(Integer, nullable=False)
    recipient_type = Column(String(10), default="staff", nullable=False)

    type = Column(String(30), default="general", nullable=False)
    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    data = Column(JSON)
    is_read = Column(Boolean, default=False, nullable=False)
