from sqlalchemy import Column, String, Integer, Numeric, Date, Text, ForeignKey
from .base import Base


class Fee(Base):
    __tablename__ = "fees"

    student_id = Column(Integer, ForeignKey("students.id"), nullable=False, index=True)
    fee_type = Column(String(20), nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    description = Column(Text)

    due_date = Column(Date, nullable=False, index=True)
    paid_date = Column(Date)
    status = Column(String(10), default="pending", nullable=False, index=True)

    # Payment details
    payment_method = Column(String(30))
    transaction_id = Column(String(100))
