import math
from fastapi import APIRouter, Depends, Query, status, Request, Path
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Any, Dict, List, Optional

from coursedesk.core.database import get_session
from coursedesk.core.dependencies import require_admin, require_site_access
from coursedesk.core.limits import limiter
from coursedesk.core.validations import BATCHES
from coursedesk.admissions.models.inquiries import InquiryStatus
from coursedesk.admissions.schemas.inquiries import (
    BatchRead,
    InquiryCreate,
    InquiryUpdate,
    InquiryStatusUpdate,
    InquiryRead,
    InquiryListResponse,
    InquiryBulkAction,
    BulkActionResult,
)
from coursedesk.admissions.crud.inquiries import (
    get_inquiry_by_id,
    get_inquiries_paginated,
    create_inquiry,
    update_inquiry,
    update_inquiry_status,
    delete_inquiry,
    bulk_inquiry_action,
)

router = APIRouter(prefix="/inquiries", tags=["Inquiries"])


@router.get("/", response_model=InquiryListResponse)
@limiter.limit("30/minute")
async def list_inquiries(
    request: Request,
    page: int = Query(1, ge=1, description="Page number starting from 1"),
    size: int = Query(50, ge=1, le=200, description="Number of items per page"),
    status: Optional[InquiryStatus] = Query(None, description="Filter by status"),
    course_id: Optional[int] = Query(None, gt=0, description="Filter by course"),
    batch_id: Optional[str] = Query(None, description="Filter by batch"),
    search: Optional[str] = Query(None, description="Student name or contact (partial match)"),
    current_user: Dict[str, Any] = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    """
    Inquiries, newest first.

    - **status**: pending, confirmed, enrolled, books_given, exam_completed,
      certificate_issued or cancelled
    - **course_id**: Only inquiries for this course
    - **batch_id**: batch1 .. batch7
    - **search**: Partial match on student name or contact number
    """
    skip = (page - 1) * size

    inquiries, total = await get_inquiries_paginated(
        db,
        skip=skip,
        limit=size,
        status=status.value if status else None,
        course_id=course_id,
        batch_id=batch_id,
        search=search,
    )

    filters_applied = {
        "status": status.value if status else None,
        "course_id": course_id,
        "batch_id": batch_id,
        "search": search,
    }

    return InquiryListResponse(
        inquiries=inquiries,
        total=total,
        page=page,
        size=size,
        pages=math.ceil(total / size) if total > 0 else 1,
        filters={k: v for k, v in filters_applied.items() if v is not None},
    )


@router.get("/batches", response_model=List[BatchRead])
@limiter.limit("60/minute")
async def list_batches(
    request: Request,
    current_user: Dict[str, Any] = Depends(require_site_access),
):
    """Fixed batch schedule offered on the inquiry form"""
    return BATCHES


@router.get("/{inquiry_id}", response_model=InquiryRead)
@limiter.limit("30/minute")
async def get_inquiry(
    request: Request,
    inquiry_id: int = Path(..., description="Inquiry ID"),
    current_user: Dict[str, Any] = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    return await get_inquiry_by_id(db, inquiry_id)


@router.post("/", response_model=InquiryRead, status_code=status.HTTP_201_CREATED)
@limiter.limit("10/minute")
async def submit_inquiry(
    request: Request,
    inquiry: InquiryCreate,
    current_user: Dict[str, Any] = Depends(require_site_access),
    db: AsyncSession = Depends(get_session),
):
    """
    Submit an admission inquiry from the website.

    - **student_name**: Student name (required)
    - **course_id**: Course of interest (required)
    - **contact_no**: 10-digit mobile number (required)
    - **father_contact_no**: 10-digit mobile number (required)
    - **address**: Postal address (required)
    - **batch_id**: Preferred batch, see /inquiries/batches (required)
    """
    return await create_inquiry(db, inquiry)


@router.patch("/{inquiry_id}", response_model=InquiryRead)
@limiter.limit("20/minute")
async def update_existing_inquiry(
    request: Request,
    inquiry_data: InquiryUpdate,
    inquiry_id: int = Path(..., description="Inquiry ID"),
    current_user: Dict[str, Any] = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    """Update an inquiry. Only provided fields are changed."""
    return await update_inquiry(db, inquiry_id, inquiry_data)


@router.patch("/{inquiry_id}/status", response_model=InquiryRead)
@limiter.limit("30/minute")
async def change_inquiry_status(
    request: Request,
    payload: InquiryStatusUpdate,
    inquiry_id: int = Path(..., description="Inquiry ID"),
    current_user: Dict[str, Any] = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    """Move an inquiry to another status, any status may follow any other"""
    return await update_inquiry_status(db, inquiry_id, payload.status)


@router.delete("/{inquiry_id}")
@limiter.limit("10/minute")
async def delete_existing_inquiry(
    request: Request,
    inquiry_id: int = Path(..., description="Inquiry ID"),
    current_user: Dict[str, Any] = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    """
    Delete an inquiry.

    Its enrollment and that enrollment's payments are deleted with it.
    """
    counts = await delete_inquiry(db, inquiry_id)

    return {
        "message": "Inquiry deleted",
        "id": inquiry_id,
        "deleted": counts,
    }


@router.post("/bulk", response_model=BulkActionResult)
@limiter.limit("10/minute")
async def bulk_inquiries(
    request: Request,
    action: InquiryBulkAction,
    current_user: Dict[str, Any] = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    """
    Apply one action to many inquiries.

    - **ids**: Inquiry IDs, unknown ones are reported in missing_ids
    - **action**: update_status or delete
    - **status**: Target status, required for update_status
    """
    return await bulk_inquiry_action(db, action)
