import math
from datetime import date
from fastapi import APIRouter, Depends, Query, status, Request
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Any, Dict, Optional

from coursedesk.core.database import get_session
from coursedesk.core.dependencies import require_admin
from coursedesk.core.limits import limiter
from coursedesk.fees.models.payments import Payment, PaymentMode
from coursedesk.fees.schemas.payments import (
    PaymentCreate,
    PaymentRead,
    PaymentWithStudent,
    PaymentListResponse,
)
from coursedesk.fees.crud.payments import create_payment, get_payments_paginated

router = APIRouter(prefix="/payments", tags=["Payments"])


def _with_student(payment: Payment) -> PaymentWithStudent:
    enrollment = payment.enrollment
    return PaymentWithStudent(
        **PaymentRead.model_validate(payment).model_dump(),
        student_name=enrollment.student_name,
        contact_no=enrollment.contact_no,
        course_id=enrollment.course_id,
        course_name=enrollment.course.name,
    )


@router.get("/", response_model=PaymentListResponse)
@limiter.limit("30/minute")
async def list_payments(
    request: Request,
    page: int = Query(1, ge=1, description="Page number starting from 1"),
    size: int = Query(50, ge=1, le=200, description="Number of items per page"),
    enrollment_id: Optional[int] = Query(None, gt=0, description="Filter by enrollment"),
    course_id: Optional[int] = Query(None, gt=0, description="Filter by course"),
    payment_mode: Optional[PaymentMode] = Query(None, description="Filter by payment mode"),
    date_from: Optional[date] = Query(None, description="Paid on or after (YYYY-MM-DD)"),
    date_to: Optional[date] = Query(None, description="Paid on or before (YYYY-MM-DD)"),
    current_user: Dict[str, Any] = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    """
    Payments register, latest payment date first.

    **total_amount** sums every matching payment, not only the current page.
    """
    skip = (page - 1) * size

    payments, total, total_amount = await get_payments_paginated(
        db,
        skip=skip,
        limit=size,
        enrollment_id=enrollment_id,
        payment_mode=payment_mode,
        date_from=date_from,
        date_to=date_to,
        course_id=course_id,
    )

    return PaymentListResponse(
        payments=[_with_student(payment) for payment in payments],
        total=total,
        page=page,
        size=size,
        pages=math.ceil(total / size) if total > 0 else 1,
        total_amount=total_amount,
    )


@router.post("/", response_model=PaymentRead, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
async def record_payment(
    request: Request,
    payment: PaymentCreate,
    current_user: Dict[str, Any] = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    """
    Record a payment against an enrollment.

    - **enrollment_id**: Enrollment being paid (required)
    - **amount**: Positive amount (required)
    - **payment_date**: Defaults to today
    - **payment_mode**: cash, card, upi, bank_transfer, cheque or other
    - **transaction_id**: Reference for non-cash payments
    - **installment_number**: 1 or 2 on the installment plan
    - **notes**: Free text

    The enrollment's payment status is derived from its payments on read.
    """
    return await create_payment(db, payment)
