"""
Payment reminder SMS.

Pending amounts are always computed here from the stored total fee and
payments, never taken from the caller.
"""
import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from coursedesk.core.config import INSTITUTE_NAME
from coursedesk.core.exceptions import BusinessLogicError
from coursedesk.core.logging_utils import log_business_event
from coursedesk.core.sms_sender import send_sms
from coursedesk.admissions.models.enrollments import Enrollment
from coursedesk.admissions.crud.enrollments import get_enrollment_by_id, get_enrollments
from coursedesk.fees.services.fee_engine import summarize_payments
from coursedesk.reports.schemas.reminders import (
    ReminderResponse,
    BulkReminderResult,
    BulkReminderResponse,
)

logger = logging.getLogger(__name__)


def format_amount(amount: Decimal) -> str:
    """12000 -> '12,000', 12000.5 -> '12,000.50'"""
    if amount == amount.to_integral_value():
        return f"{amount:,.0f}"
    return f"{amount:,.2f}"


def format_reminder_message(student_name: str, course_name: str, pending_amount: Decimal) -> str:
    return (
        f"Dear {student_name}, this is a payment reminder for your {course_name} "
        f"course at {INSTITUTE_NAME}. Pending amount: ₹{format_amount(pending_amount)}. "
        f"Please complete your payment at your earliest convenience. Thank you!"
    )


def pending_amount(enrollment: Enrollment) -> Decimal:
    summary = summarize_payments(
        enrollment.total_fee,
        [payment.amount for payment in enrollment.payments],
        enrollment.start_date,
        datetime.now(),
        detect_overdue=False,
    )
    return summary.balance


async def send_payment_reminder(session: AsyncSession, enrollment_id: int) -> ReminderResponse:
    enrollment = await get_enrollment_by_id(session, enrollment_id)

    if enrollment.cancelled:
        raise BusinessLogicError(
            "Enrollment is cancelled", {"enrollment_id": enrollment_id}
        )

    amount = pending_amount(enrollment)
    if amount <= 0:
        raise BusinessLogicError(
            "No pending amount for this enrollment",
            {"enrollment_id": enrollment_id, "balance": str(amount)},
        )

    message = format_reminder_message(enrollment.student_name, enrollment.course.name, amount)
    result = await send_sms(enrollment.contact_no, message)

    log_business_event(
        "payment_reminder_sent",
        "enrollment",
        enrollment_id,
        {"provider": result.provider, "success": result.success, "pending_amount": str(amount)},
    )

    return ReminderResponse(
        success=result.success,
        message=(
            "Payment reminder sent successfully"
            if result.success
            else "SMS failed, logged to console"
        ),
        enrollment_id=enrollment_id,
        sent_to=enrollment.contact_no,
        student_name=enrollment.student_name,
        course_name=enrollment.course.name,
        pending_amount=amount,
        provider=result.provider,
        error=result.error,
        timestamp=datetime.now(timezone.utc),
    )


async def send_bulk_reminders(
    session: AsyncSession, enrollment_ids: Optional[List[int]] = None
) -> BulkReminderResponse:
    """
    Remind every non-cancelled enrollment with a positive balance, or only
    the listed ones. Students without a balance are skipped silently.
    """
    enrollments = await get_enrollments(
        session, include_cancelled=False, enrollment_ids=enrollment_ids
    )

    results = []
    for enrollment in enrollments:
        amount = pending_amount(enrollment)
        if amount <= 0:
            continue

        message = format_reminder_message(enrollment.student_name, enrollment.course.name, amount)
        result = await send_sms(enrollment.contact_no, message)

        results.append(
            BulkReminderResult(
                enrollment_id=enrollment.id,
                student_name=enrollment.student_name,
                contact_no=enrollment.contact_no,
                course_name=enrollment.course.name,
                pending_amount=amount,
                sent=result.success,
                provider=result.provider,
                error=result.error,
            )
        )

    success_count = sum(1 for item in results if item.sent)

    log_business_event(
        "bulk_payment_reminders_sent",
        "enrollment",
        None,
        {"sent_count": len(results), "success_count": success_count},
    )

    return BulkReminderResponse(
        success=True,
        message="Bulk payment reminders processed",
        sent_count=len(results),
        success_count=success_count,
        results=results,
        timestamp=datetime.now(timezone.utc),
    )
