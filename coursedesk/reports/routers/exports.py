from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Any, Dict, Optional

from coursedesk.core.database import get_session
from coursedesk.core.dependencies import require_admin
from coursedesk.core.limits import limiter
from coursedesk.admissions.crud.enrollments import get_enrollments
from coursedesk.reports.services.csv_export import ReportType, build_report, report_filename

router = APIRouter(prefix="/reports", tags=["Reports"])


@router.get("/export")
@limiter.limit("10/minute")
async def export_report(
    request: Request,
    report_type: ReportType = Query(..., description="enrollment, payments or students"),
    course_id: Optional[int] = Query(None, gt=0, description="Only this course"),
    current_user: Dict[str, Any] = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    """
    Download a report as a CSV attachment named
    `{report_type}_report_{YYYY-MM-DD}.csv`.

    - **enrollment**: One row per enrollment with fees, paid and balance
    - **payments**: One row per payment
    - **students**: Student listing with payment status
    """
    enrollments = await get_enrollments(db, course_id=course_id)
    content = build_report(report_type, enrollments)

    return Response(
        content=content,
        media_type="text/csv",
        headers={
            "Content-Disposition": f'attachment; filename="{report_filename(report_type)}"'
        },
    )
