# smis/schemas/finance_schemas.py
"""Pydantic schemas for fees and payments."""
from datetime import date
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field

from ..utils.constants import FeeType


class FeeCreate(BaseModel):
    student_id: int
    amount: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    fee_type: FeeType
    due_date: date
    description: Optional[str] = None


class FeePayment(BaseModel):
    payment_date: Optional[date] = None
    payment_method: Optional[str] = Field(default=None, max_length=30)
    transaction_id: Optional[str] = Field(default=None, max_length=100)
