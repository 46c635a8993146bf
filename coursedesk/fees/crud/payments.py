import logging
from datetime import date
from decimal import Decimal
from typing import List, Optional, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload
from sqlalchemy import and_, func

from coursedesk.core.database import db_operation
from coursedesk.core.exceptions import NotFoundError
from coursedesk.core.logging_utils import log_business_event
from coursedesk.fees.models.payments import Payment
from coursedesk.fees.schemas.payments import PaymentCreate
from coursedesk.admissions.models.enrollments import Enrollment

logger = logging.getLogger(__name__)


async def _ensure_enrollment_exists(session: AsyncSession, enrollment_id: int) -> None:
    result = await session.execute(
        select(Enrollment.id).where(Enrollment.id == enrollment_id)
    )
    if result.scalar_one_or_none() is None:
        raise NotFoundError("Enrollment", str(enrollment_id))


@db_operation
async def create_payment(session: AsyncSession, payment_data: PaymentCreate) -> Payment:
    """Append a payment; status is derived on read, nothing else changes"""
    await _ensure_enrollment_exists(session, payment_data.enrollment_id)

    payment = Payment(**payment_data.model_dump())
    session.add(payment)
    await session.commit()
    await session.refresh(payment)

    log_business_event(
        "payment_recorded",
        "payment",
        payment.id,
        {
            "enrollment_id": payment.enrollment_id,
            "amount": str(payment.amount),
            "payment_mode": payment.payment_mode.value,
        },
    )
    return payment


@db_operation
async def get_payments_by_enrollment(
    session: AsyncSession, enrollment_id: int
) -> List[Payment]:
    """Payments of one enrollment, latest payment date first"""
    await _ensure_enrollment_exists(session, enrollment_id)

    result = await session.execute(
        select(Payment)
        .where(Payment.enrollment_id == enrollment_id)
        .order_by(Payment.payment_date.desc(), Payment.id.desc())
    )
    return list(result.scalars().all())


@db_operation
async def get_payments_paginated(
    session: AsyncSession,
    skip: int = 0,
    limit: int = 50,
    enrollment_id: Optional[int] = None,
    payment_mode: Optional[str] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    course_id: Optional[int] = None,
) -> Tuple[List[Payment], int, Decimal]:
    """Payments register with enrollment and course loaded"""
    query = select(Payment).options(
        selectinload(Payment.enrollment).selectinload(Enrollment.course)
    )
    count_query = select(func.count(Payment.id), func.coalesce(func.sum(Payment.amount), 0))

    conditions = []

    if enrollment_id:
        conditions.append(Payment.enrollment_id == enrollment_id)

    if payment_mode:
        conditions.append(Payment.payment_mode == payment_mode)

    if date_from:
        conditions.append(Payment.payment_date >= date_from)

    if date_to:
        conditions.append(Payment.payment_date <= date_to)

    if course_id:
        conditions.append(
            Payment.enrollment_id.in_(
                select(Enrollment.id).where(Enrollment.course_id == course_id)
            )
        )

    if conditions:
        query = query.where(and_(*conditions))
        count_query = count_query.where(and_(*conditions))

    count_result = await session.execute(count_query)
    total, total_amount = count_result.one()

    query = (
        query.order_by(Payment.payment_date.desc(), Payment.id.desc())
        .offset(skip)
        .limit(limit)
    )
    result = await session.execute(query)

    return list(result.scalars().all()), total or 0, Decimal(str(total_amount or 0))
