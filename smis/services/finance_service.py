# smis/services/finance_service.py
"""Fees, payments, invoices and financial reports."""
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional
import logging

from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession

from .activity_service import ActivityService
from .base_service import BaseService
from ..core.exceptions import NotFoundError, ValidationError
from ..core.performance_monitor import monitor_performance
from ..models.fee import Fee
from ..models.student import Student
from ..utils.constants import FeeStatus, FeeType
from ..utils.serializers import money, serialize_fee
from ..utils.validators import parse_date

logger = logging.getLogger(__name__)

REPORT_TYPES = ("revenue", "outstanding", "fee_types")
UNPAID = (FeeStatus.PENDING.value, FeeStatus.OVERDUE.value)


class FinanceService(BaseService[Fee]):
    def __init__(self, db: AsyncSession, actor_id: Optional[int] = None):
        super().__init__(Fee, db)
        self.actor_id = actor_id
        self.activity = ActivityService(db)

    async def _student_or_404(self, student_id: int) -> Student:
        student = await self.db.get(Student, student_id)
        if not student or student.is_deleted:
            raise NotFoundError("Student")
        return student

    async def get_student_fees(self, student_id: int) -> List[Dict[str, Any]]:
        await self._student_or_404(student_id)
        result = await self.db.execute(
            select(Fee).where(Fee.student_id == student_id, Fee.is_deleted == False)
            .order_by(Fee.due_date.desc(), Fee.id.desc())
        )
        return [serialize_fee(fee) for fee in result.scalars().all()]

    async def create_fee(self, data: Dict[str, Any]) -> Fee:
        student = await self._student_or_404(data["student_id"])
        fee = await self.create({
            "student_id": student.id,
            "fee_type": FeeType(data["fee_type"]).value,
            "amount": data["amount"],
            "due_date": data["due_date"],
            "description": data.get("description") or "",
            "status": FeeStatus.PENDING.value,
        })
        await self.activity.log_activity(
            user_id=self.actor_id,
            action="fee_created",
            entity_type="fee",
            entity_id=fee.id,
            description=f"Created {fee.fee_type} fee of {money(fee.amount):.2f} for {student.full_name}",
            metadata={"student_id": student.id, "amount": money(fee.amount)},
        )
        return fee

    async def pay_fee(self, fee_id: int, payment: Dict[str, Any]) -> Dict[str, Any]:
        """Mark a fee paid; only one of several concurrent payments can match the unpaid row"""
        paid_date = payment.get("payment_date") or date.today()
        result = await self.db.execute(
            update(Fee)
            .where(Fee.id == fee_id, Fee.is_deleted == False, Fee.status != FeeStatus.PAID.value)
            .values(
                status=FeeStatus.PAID.value,
                paid_date=paid_date,
                payment_method=payment.get("payment_method"),
                transaction_id=payment.get("transaction_id"),
                updated_at=datetime.now(timezone.utc),
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            await self.db.rollback()
            raise NotFoundError("Fee", "Fee not found or already paid")
        await self.db.commit()

        fee = await self.db.get(Fee, fee_id, populate_existing=True)
        await self.activity.log_activity(
            user_id=self.actor_id,
            action="fee_paid",
            entity_type="fee",
            entity_id=fee_id,
            description=f"Fee {fee_id} marked as paid",
            metadata={"transaction_id": payment.get("transaction_id")},
        )
        return serialize_fee(fee)

    async def outstanding_fees(self, student_id: int) -> List[Fee]:
        result = await self.db.execute(
            select(Fee).where(
                Fee.student_id == student_id,
                Fee.is_deleted == False,
                Fee.status.in_(UNPAID),
            ).order_by(Fee.due_date)
        )
        return result.scalars().all()

    async def generate_invoice(self, student_id: int) -> Dict[str, Any]:
        student = await self._student_or_404(student_id)
        fees = await self.outstanding_fees(student_id)
        if not fees:
            raise NotFoundError("Fee", "No outstanding fees found")

        return {
            "student_id": student.id,
            "student_name": student.full_name,
            "student_number": student.student_number,
            "outstanding_fees": [serialize_fee(fee) for fee in fees],
            "total_amount": money(sum(fee.amount for fee in fees)),
            "generated_at": datetime.now(timezone.utc).isoformat(),
        }

    @monitor_performance("finance.get_report")
    async def get_report(self, report_type: Optional[str], start_date: Optional[str] = None,
                         end_date: Optional[str] = None) -> Dict[str, Any]:
        if report_type not in REPORT_TYPES:
            raise ValidationError("Invalid report type", field="report_type")
        start = parse_date(start_date, "start_date")
        end = parse_date(end_date, "end_date")
        if start and end and start > end:
            raise ValidationError("Start date cannot be after end date")

        # Revenue is dated by payment, outstanding fees by due date
        date_column = Fee.due_date if report_type == "outstanding" else Fee.paid_date
        conditions = [Fee.is_deleted == False]
        if report_type == "outstanding":
            conditions.append(Fee.status.in_(UNPAID))
        else:
            conditions.append(Fee.status == FeeStatus.PAID.value)
        if start:
            conditions.append(date_column >= start)
        if end:
            conditions.append(date_column <= end)

        if report_type == "fee_types":
            total = func.sum(Fee.amount)
            rows = (await self.db.execute(
                select(Fee.fee_type, total.label("total_amount"), func.count(Fee.id).label("record_count"))
                .where(*conditions)
                .group_by(Fee.fee_type)
                .order_by(total.desc())
            )).all()
            report = [
                {"fee_type": row.fee_type, "total_amount": money(row.total_amount), "count": row.record_count}
                for row in rows
            ]
        else:
            row = (await self.db.execute(
                select(
                    func.sum(Fee.amount).label("total"),
                    func.count(Fee.id).label("record_count"),
                    func.avg(Fee.amount).label("average"),
                ).where(*conditions)
            )).one()
            if report_type == "revenue":
                report = {
                    "total_revenue": money(row.total),
                    "total_transactions": row.record_count,
                    "average_fee_amount": money(row.average),
                }
            else:
                report = {
                    "total_outstanding": money(row.total),
                    "outstanding_count": row.record_count,
                    "average_outstanding_amount": money(row.average),
                }

        return {"report_type": report_type, "report": report}

    async def payment_history(self, student_id: int, limit: int = 10, offset: int = 0) -> List[Dict[str, Any]]:
        await self._student_or_404(student_id)
        result = await self.db.execute(
            select(Fee).where(
                Fee.student_id == student_id,
                Fee.status == FeeStatus.PAID.value,
                Fee.is_deleted == False,
            )
            .order_by(Fee.paid_date.desc(), Fee.id.desc())
            .limit(limit)
            .offset(offset)
        )
        return [serialize_fee(fee) for fee in result.scalars().all()]

    async def overdue_fees(self, today: Optional[date] = None) -> List[Dict[str, Any]]:
        today = today or date.today()
        result = await self.db.execute(
            select(Fee, (Student.first_name + " " + Student.last_name).label("student_name"))
            .join(Student, Student.id == Fee.student_id)
            .where(
                Fee.is_deleted == False,
                Fee.status.in_(UNPAID),
                Fee.due_date < today,
            )
            .order_by(Fee.due_date)
        )
        fees = []
        for row in result.all():
            data = serialize_fee(row[0])
            data["student_name"] = row.student_name
            data["days_overdue"] = (today - row[0].due_date).days
            fees.append(data)
        return fees

    async def mark_overdue(self, today: Optional[date] = None) -> int:
        """Flip pending fees past their due date to overdue"""
        today = today or date.today()
        result = await self.db.execute(
            update(Fee)
            .where(
                Fee.is_deleted == False,
                Fee.status == FeeStatus.PENDING.value,
                Fee.due_date < today,
            )
            .values(status=FeeStatus.OVERDUE.value, updated_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        if result.rowcount:
            logger.info(f"Marked {result.rowcount} fees as overdue")
            await self.activity.log_activity(
                user_id=self.actor_id,
                action="fees_marked_overdue",
                entity_type="fee",
                entity_id=None,
                description=f"Marked {result.rowcount} fees as overdue",
            )
        return result.rowcount
