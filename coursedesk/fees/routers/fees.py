from collections import Counter
from datetime import datetime
from decimal import Decimal
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Any, Dict, Optional

from coursedesk.core.config import PAYMENT_GRACE_DAYS
from coursedesk.core.database import get_session
from coursedesk.core.dependencies import require_admin
from coursedesk.core.limits import limiter
from coursedesk.fees.schemas.courses import CourseBrief
from coursedesk.fees.schemas.fees import FeeOverviewItem, FeeOverviewResponse
from coursedesk.fees.services.fee_engine import PaymentStatus, summarize_payments
from coursedesk.admissions.crud.enrollments import get_enrollments

router = APIRouter(prefix="/fees", tags=["Fees"])


@router.get("/overview", response_model=FeeOverviewResponse)
@limiter.limit("30/minute")
async def fees_overview(
    request: Request,
    status: Optional[PaymentStatus] = Query(None, description="Filter by payment status"),
    course_id: Optional[int] = Query(None, gt=0, description="Filter by course"),
    search: Optional[str] = Query(None, description="Student name or contact (partial match)"),
    include_cancelled: bool = Query(False, description="Include cancelled enrollments"),
    current_user: Dict[str, Any] = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    """
    Fee management overview: every enrollment with paid amount, balance
    and status.

    Unlike the enrollment listing this view flags **overdue** enrollments:
    nothing paid and more than the grace period since the start date.
    **status_counts** and the totals are computed before the status filter.
    """
    now = datetime.now()
    enrollments = await get_enrollments(
        db, course_id=course_id, search=search, include_cancelled=include_cancelled
    )

    items = []
    for enrollment in enrollments:
        summary = summarize_payments(
            enrollment.total_fee,
            [payment.amount for payment in enrollment.payments],
            enrollment.start_date,
            now,
            detect_overdue=True,
            grace_days=PAYMENT_GRACE_DAYS,
        )
        items.append(
            FeeOverviewItem(
                enrollment_id=enrollment.id,
                student_name=enrollment.student_name,
                contact_no=enrollment.contact_no,
                course=CourseBrief.model_validate(enrollment.course),
                fee_plan=enrollment.fee_plan,
                start_date=enrollment.start_date,
                total_fee=enrollment.total_fee,
                paid_amount=summary.paid_amount,
                balance=summary.balance,
                status=summary.status,
                payments_count=len(enrollment.payments),
                cancelled=enrollment.cancelled,
            )
        )

    status_counts = Counter(item.status.value for item in items)
    total_fee = sum((item.total_fee for item in items), Decimal("0"))
    total_paid = sum((item.paid_amount for item in items), Decimal("0"))

    if status:
        items = [item for item in items if item.status == status]

    return FeeOverviewResponse(
        items=items,
        total=len(items),
        total_fee=total_fee,
        total_paid=total_paid,
        total_balance=total_fee - total_paid,
        status_counts={s.value: status_counts.get(s.value, 0) for s in PaymentStatus},
    )
