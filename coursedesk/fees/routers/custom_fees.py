import math
from fastapi import APIRouter, Depends, Query, status, Request, Path
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Any, Dict, Optional

from coursedesk.core.database import get_session
from coursedesk.core.dependencies import require_admin
from coursedesk.core.limits import limiter
from coursedesk.fees.schemas.custom_fees import (
    CustomFeeCreate,
    CustomFeeUpdate,
    CustomFeeRead,
    CustomFeeListResponse,
    CustomFeeCheckResponse,
    CustomFeeWriteResponse,
    ResyncReport,
)
from coursedesk.fees.crud.custom_fees import (
    get_custom_fee_by_id,
    get_custom_fees_paginated,
    find_matching_custom_fee,
    create_custom_fee,
    update_custom_fee,
    delete_custom_fee,
)
from coursedesk.fees.services.fee_sync import resync_enrollment_fees

router = APIRouter(prefix="/custom-fees", tags=["Custom Fees"])


@router.get("/", response_model=CustomFeeListResponse)
@limiter.limit("30/minute")
async def list_custom_fees(
    request: Request,
    page: int = Query(1, ge=1, description="Page number starting from 1"),
    size: int = Query(50, ge=1, le=200, description="Number of items per page"),
    course_id: Optional[int] = Query(None, gt=0, description="Filter by course"),
    is_active: Optional[bool] = Query(None, description="Filter by active flag"),
    search: Optional[str] = Query(None, description="Student name or contact (partial match)"),
    current_user: Dict[str, Any] = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    """Custom student fees, newest first, with their course"""
    skip = (page - 1) * size

    custom_fees, total = await get_custom_fees_paginated(
        db,
        skip=skip,
        limit=size,
        course_id=course_id,
        is_active=is_active,
        search=search,
    )

    return CustomFeeListResponse(
        custom_fees=custom_fees,
        total=total,
        page=page,
        size=size,
        pages=math.ceil(total / size) if total > 0 else 1,
    )


@router.get(
    "/check/{student_name}/{contact_no}/{course_id}",
    response_model=CustomFeeCheckResponse,
)
@limiter.limit("60/minute")
async def check_custom_fee(
    request: Request,
    student_name: str = Path(..., description="Student name, exact match"),
    contact_no: str = Path(..., description="Contact number, exact match"),
    course_id: int = Path(..., description="Course ID"),
    current_user: Dict[str, Any] = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    """
    Look up the active custom fee for a student on a course.

    Name and contact must match exactly as stored.
    """
    custom_fee = await find_matching_custom_fee(db, student_name, contact_no, course_id)
    return CustomFeeCheckResponse(has_custom_fee=custom_fee is not None, custom_fee=custom_fee)


@router.get("/{custom_fee_id}", response_model=CustomFeeRead)
@limiter.limit("30/minute")
async def get_custom_fee(
    request: Request,
    custom_fee_id: int = Path(..., description="Custom fee ID"),
    current_user: Dict[str, Any] = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    return await get_custom_fee_by_id(db, custom_fee_id)


async def _write_response(
    db: AsyncSession,
    custom_fee_id: int,
    sync: ResyncReport,
    previous_sync: Optional[ResyncReport] = None,
):
    custom_fee = await get_custom_fee_by_id(db, custom_fee_id)
    return CustomFeeWriteResponse(
        custom_fee=custom_fee, sync=sync, previous_sync=previous_sync
    )


@router.post("/", response_model=CustomFeeWriteResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("10/minute")
async def create_new_custom_fee(
    request: Request,
    custom_fee_data: CustomFeeCreate,
    current_user: Dict[str, Any] = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    """
    Create a custom fee and re-sync the student's existing enrollments.

    - **student_name**, **contact_no**, **course_id**: Who and which course
    - **custom_full_fee** / **custom_installment_fee** / **custom_installment1** /
      **custom_installment2**: Overrides, empty means course default
    - **reason**: scholarship, discount, financial_assistance, ...
    - **created_by**: Defaults to "Admin"

    Fails with 400 when the student already has an active custom fee for
    the course.
    """
    custom_fee = await create_custom_fee(db, custom_fee_data)
    custom_fee_id = custom_fee.id

    sync = await resync_enrollment_fees(
        db, custom_fee.student_name, custom_fee.contact_no, custom_fee.course_id
    )
    return await _write_response(db, custom_fee_id, sync)


@router.patch("/{custom_fee_id}", response_model=CustomFeeWriteResponse)
@limiter.limit("20/minute")
async def update_existing_custom_fee(
    request: Request,
    custom_fee_data: CustomFeeUpdate,
    custom_fee_id: int = Path(..., description="Custom fee ID"),
    current_user: Dict[str, Any] = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    """
    Update a custom fee and re-sync enrollments of the student and course
    it now points at. Deactivating it re-syncs them to course defaults.

    When the student, contact or course changes, enrollments of the
    previous combination are re-synced too and reported in
    **previous_sync**.
    """
    existing = await get_custom_fee_by_id(db, custom_fee_id)
    previous_key = (existing.student_name, existing.contact_no, existing.course_id)

    custom_fee = await update_custom_fee(db, custom_fee_id, custom_fee_data)
    current_key = (custom_fee.student_name, custom_fee.contact_no, custom_fee.course_id)

    sync = await resync_enrollment_fees(db, *current_key)

    previous_sync = None
    if previous_key != current_key:
        previous_sync = await resync_enrollment_fees(db, *previous_key)

    return await _write_response(db, custom_fee_id, sync, previous_sync)


@router.post("/{custom_fee_id}/sync-enrollments", response_model=CustomFeeWriteResponse)
@limiter.limit("10/minute")
async def sync_custom_fee_enrollments(
    request: Request,
    custom_fee_id: int = Path(..., description="Custom fee ID"),
    current_user: Dict[str, Any] = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    """Re-freeze total fees of the student's enrollments on demand"""
    custom_fee = await get_custom_fee_by_id(db, custom_fee_id)

    sync = await resync_enrollment_fees(
        db, custom_fee.student_name, custom_fee.contact_no, custom_fee.course_id
    )
    return await _write_response(db, custom_fee_id, sync)


@router.delete("/{custom_fee_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("10/minute")
async def delete_existing_custom_fee(
    request: Request,
    custom_fee_id: int = Path(..., description="Custom fee ID"),
    current_user: Dict[str, Any] = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    """
    Delete a custom fee.

    Enrollments keep the total fee it produced. To bring them back to
    course defaults, edit their total_fee through PATCH /enrollments/{id}.
    """
    await delete_custom_fee(db, custom_fee_id)
