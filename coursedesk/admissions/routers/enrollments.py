import math
from datetime import datetime
from fastapi import APIRouter, Depends, Query, status, Request, Path
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Any, Dict, List, Optional

from coursedesk.core.database import get_session
from coursedesk.core.dependencies import require_admin
from coursedesk.core.limits import limiter
from coursedesk.fees.schemas.payments import PaymentRead
from coursedesk.fees.crud.payments import get_payments_by_enrollment
from coursedesk.fees.services.fee_engine import PaymentStatus, summarize_payments
from coursedesk.admissions.models.enrollments import Enrollment
from coursedesk.admissions.schemas.enrollments import (
    EnrollmentCreate,
    EnrollmentUpdate,
    EnrollmentRead,
    EnrollmentListResponse,
    EnrollmentBulkAction,
)
from coursedesk.admissions.schemas.inquiries import BulkActionResult
from coursedesk.admissions.crud.enrollments import (
    get_enrollment_by_id,
    get_enrollments,
    create_enrollment,
    update_enrollment,
    delete_enrollment,
    bulk_delete_enrollments,
)

router = APIRouter(prefix="/enrollments", tags=["Enrollments"])


def to_read(enrollment: Enrollment, now: Optional[datetime] = None) -> EnrollmentRead:
    # Enrollment screens show paid / partial / pending only
    summary = summarize_payments(
        enrollment.total_fee,
        [payment.amount for payment in enrollment.payments],
        enrollment.start_date,
        now or datetime.now(),
        detect_overdue=False,
    )
    return EnrollmentRead.from_enrollment(enrollment, summary)


@router.get("/", response_model=EnrollmentListResponse)
@limiter.limit("30/minute")
async def list_enrollments(
    request: Request,
    page: int = Query(1, ge=1, description="Page number starting from 1"),
    size: int = Query(50, ge=1, le=200, description="Number of items per page"),
    course_id: Optional[int] = Query(None, gt=0, description="Filter by course"),
    batch_id: Optional[str] = Query(None, description="Filter by batch"),
    payment_status: Optional[PaymentStatus] = Query(None, description="Filter by payment status"),
    search: Optional[str] = Query(None, description="Student name or contact (partial match)"),
    include_cancelled: bool = Query(True, description="Include cancelled enrollments"),
    current_user: Dict[str, Any] = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    """
    Enrollments, newest first, each with payments, paid amount, balance
    and payment status.

    - **payment_status**: paid, partial or pending (overdue is only
      reported by the fees overview)
    """
    now = datetime.now()
    enrollments = await get_enrollments(
        db,
        course_id=course_id,
        batch_id=batch_id,
        search=search,
        include_cancelled=include_cancelled,
    )

    items = [to_read(enrollment, now) for enrollment in enrollments]

    # Status is derived, so it is filtered after loading
    if payment_status:
        items = [item for item in items if item.payment_status == payment_status]

    total = len(items)
    skip = (page - 1) * size

    filters_applied = {
        "course_id": course_id,
        "batch_id": batch_id,
        "payment_status": payment_status.value if payment_status else None,
        "search": search,
        "include_cancelled": include_cancelled,
    }

    return EnrollmentListResponse(
        enrollments=items[skip:skip + size],
        total=total,
        page=page,
        size=size,
        pages=math.ceil(total / size) if total > 0 else 1,
        filters={k: v for k, v in filters_applied.items() if v is not None},
    )


@router.get("/{enrollment_id}", response_model=EnrollmentRead)
@limiter.limit("30/minute")
async def get_enrollment(
    request: Request,
    enrollment_id: int = Path(..., description="Enrollment ID"),
    current_user: Dict[str, Any] = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    enrollment = await get_enrollment_by_id(db, enrollment_id)
    return to_read(enrollment)


@router.get("/{enrollment_id}/payments", response_model=List[PaymentRead])
@limiter.limit("30/minute")
async def list_enrollment_payments(
    request: Request,
    enrollment_id: int = Path(..., description="Enrollment ID"),
    current_user: Dict[str, Any] = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    """Payment history of one enrollment, latest payment date first"""
    return await get_payments_by_enrollment(db, enrollment_id)


@router.post("/", response_model=EnrollmentRead, status_code=status.HTTP_201_CREATED)
@limiter.limit("10/minute")
async def enroll_student(
    request: Request,
    enrollment_data: EnrollmentCreate,
    current_user: Dict[str, Any] = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    """
    Convert an inquiry into an enrollment.

    - **inquiry_id**: Inquiry being converted (required)
    - **student_name** / **contact_no** / **course_id** / **batch_id**:
      Default to the inquiry's values
    - **father_name**, **father_contact_no**, **student_education**,
      **student_email**, **student_address**: Admission form (required)
    - **start_date**: First day of the course (required)
    - **fee_plan**: full or installments (required)

    The total fee is frozen from the student's effective fees for the
    chosen plan and the inquiry moves to **enrolled**.
    """
    enrollment = await create_enrollment(db, enrollment_data)
    return to_read(enrollment)


@router.patch("/{enrollment_id}", response_model=EnrollmentRead)
@limiter.limit("20/minute")
async def update_existing_enrollment(
    request: Request,
    enrollment_data: EnrollmentUpdate,
    enrollment_id: int = Path(..., description="Enrollment ID"),
    current_user: Dict[str, Any] = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    """
    Update an enrollment. Only provided fields are changed.

    - **total_fee**: Stored as given, overriding any recalculation
    - **fee_plan** / **course_id**: Re-freeze the total fee when changed
    - **start_date** / **course_id**: Recompute the end date when changed
    - **cancelled**: Mark the enrollment as cancelled
    """
    enrollment = await update_enrollment(db, enrollment_id, enrollment_data)
    return to_read(enrollment)


@router.delete("/{enrollment_id}")
@limiter.limit("10/minute")
async def delete_existing_enrollment(
    request: Request,
    enrollment_id: int = Path(..., description="Enrollment ID"),
    current_user: Dict[str, Any] = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    """Delete an enrollment together with its payments"""
    counts = await delete_enrollment(db, enrollment_id)

    return {
        "message": "Enrollment deleted",
        "id": enrollment_id,
        "deleted": counts,
    }


@router.post("/bulk", response_model=BulkActionResult)
@limiter.limit("10/minute")
async def bulk_enrollments(
    request: Request,
    action: EnrollmentBulkAction,
    current_user: Dict[str, Any] = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    """Delete many enrollments with their payments in one transaction"""
    return await bulk_delete_enrollments(db, action.ids)
