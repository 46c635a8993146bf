import logging
from datetime import datetime
from decimal import Decimal
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy import func

from coursedesk.core.config import PAYMENT_GRACE_DAYS
from coursedesk.core.database import db_operation
from coursedesk.admissions.models.inquiries import Inquiry
from coursedesk.admissions.crud.enrollments import get_enrollments
from coursedesk.fees.models.payments import Payment
from coursedesk.fees.services.fee_engine import PaymentStatus, summarize_payments
from coursedesk.reports.schemas.stats import DashboardStats

logger = logging.getLogger(__name__)


@db_operation
async def get_dashboard_stats(
    session: AsyncSession, now: datetime = None, grace_days: int = PAYMENT_GRACE_DAYS
) -> DashboardStats:
    """
    Dashboard totals.

    Pending is the sum of positive balances, overdue counts enrollments
    with nothing paid past the grace window. Cancelled enrollments count
    towards neither. Total collected covers every payment on record.
    """
    now = now or datetime.now()

    inquiries_result = await session.execute(select(func.count(Inquiry.id)))
    total_inquiries = inquiries_result.scalar() or 0

    collected_result = await session.execute(
        select(func.coalesce(func.sum(Payment.amount), 0))
    )
    total_collected = Decimal(str(collected_result.scalar() or 0))

    enrollments = await get_enrollments(session, include_cancelled=False)

    pending_payments = Decimal("0")
    overdue_payments = 0

    for enrollment in enrollments:
        summary = summarize_payments(
            enrollment.total_fee,
            [payment.amount for payment in enrollment.payments],
            enrollment.start_date,
            now,
            detect_overdue=True,
            grace_days=grace_days,
        )
        if summary.balance > 0:
            pending_payments += summary.balance
        if summary.status == PaymentStatus.overdue:
            overdue_payments += 1

    return DashboardStats(
        total_inquiries=total_inquiries,
        enrolled_students=len(enrollments),
        pending_payments=pending_payments,
        overdue_payments=overdue_payments,
        total_collected=total_collected,
    )
