from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Any, Dict

from coursedesk.core.database import get_session
from coursedesk.core.dependencies import require_admin
from coursedesk.core.limits import limiter
from coursedesk.reports.schemas.stats import DashboardStats
from coursedesk.reports.crud.stats import get_dashboard_stats

router = APIRouter(tags=["Dashboard"])


@router.get("/stats", response_model=DashboardStats)
@limiter.limit("30/minute")
async def dashboard_stats(
    request: Request,
    current_user: Dict[str, Any] = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    """
    Dashboard totals.

    - **total_inquiries**: Every inquiry on record
    - **enrolled_students**: Enrollments that are not cancelled
    - **pending_payments**: Sum of positive balances
    - **overdue_payments**: Enrollments with nothing paid past the grace period
    - **total_collected**: Sum of all payments
    """
    return await get_dashboard_stats(db)
