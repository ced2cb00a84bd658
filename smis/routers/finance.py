"""Finance endpoints: fees, payments, invoices and reports."""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.dependencies import CurrentUser, require_roles
from ..schemas.finance_schemas import FeeCreate, FeePayment
from ..services.finance_service import FinanceService
from ..utils.constants import UserRole
from ..utils.responses import success_response
from ..utils.serializers import serialize_fee

router = APIRouter(prefix="/api/finance", tags=["Finance"])

finance_staff = require_roles(UserRole.FINANCE, UserRole.ADMIN)


async def get_finance_service(
    current_user: CurrentUser = Depends(finance_staff),
    db: AsyncSession = Depends(get_db),
) -> FinanceService:
    return FinanceService(db, actor_id=current_user.id)


@router.get("/students/{student_id}/fees")
async def get_student_fees(student_id: int, service: FinanceService = Depends(get_finance_service)):
    return success_response(await service.get_student_fees(student_id))


@router.post("/fees", status_code=201)
async def create_fee(body: FeeCreate, service: FinanceService = Depends(get_finance_service)):
    fee = await service.create_fee(body.model_dump())
    return success_response(serialize_fee(fee), "Fee created successfully")


@router.post("/fees/mark-overdue")
async def mark_overdue(service: FinanceService = Depends(get_finance_service)):
    updated = await service.mark_overdue()
    return success_response({"updated": updated}, f"{updated} fees marked as overdue")


@router.put("/fees/{fee_id}/pay")
async def pay_fee(
    fee_id: int,
    body: Optional[FeePayment] = None,
    service: FinanceService = Depends(get_finance_service),
):
    payment = (body or FeePayment()).model_dump()
    return success_response(await service.pay_fee(fee_id, payment), "Fee marked as paid successfully")


@router.get("/students/{student_id}/invoice")
async def generate_invoice(student_id: int, service: FinanceService = Depends(get_finance_service)):
    return success_response(await service.generate_invoice(student_id))


@router.get("/reports")
async def get_reports(
    report_type: Optional[str] = Query(None),
    start_date: Optional[str] = Query(None),
    end_date: Optional[str] = Query(None),
    service: FinanceService = Depends(get_finance_service),
):
    return success_response(await service.get_report(report_type, start_date, end_date))


@router.get("/students/{student_id}/payments")
async def get_payment_history(
    student_id: int,
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    service: FinanceService = Depends(get_finance_service),
):
    return success_response(await service.payment_history(student_id, limit, offset))


@router.get("/overdue")
async def get_overdue_fees(service: FinanceService = Depends(get_finance_service)):
    return success_response(await service.overdue_fees())
