from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Any, Dict

from coursedesk.core.database import get_session
from coursedesk.core.dependencies import require_admin
from coursedesk.core.limits import limiter
from coursedesk.reports.schemas.reminders import (
    ReminderRequest,
    ReminderResponse,
    BulkReminderRequest,
    BulkReminderResponse,
)
from coursedesk.reports.services.reminders import send_payment_reminder, send_bulk_reminders

router = APIRouter(tags=["Reminders"])


@router.post("/send-reminder", response_model=ReminderResponse)
@limiter.limit("20/minute")
async def send_reminder(
    request: Request,
    payload: ReminderRequest,
    current_user: Dict[str, Any] = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    """
    Text a payment reminder to one student.

    The pending amount is computed from the enrollment's total fee and
    payments. Delivery failures come back with **success** false and the
    provider's **error**.
    """
    return await send_payment_reminder(db, payload.enrollment_id)


@router.post("/send-bulk-reminders", response_model=BulkReminderResponse)
@limiter.limit("5/minute")
async def send_reminders_in_bulk(
    request: Request,
    payload: BulkReminderRequest,
    current_user: Dict[str, Any] = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    """
    Text reminders to every student with a pending balance.

    - **enrollment_ids**: Restrict to these enrollments (optional)
    """
    return await send_bulk_reminders(db, payload.enrollment_ids)
