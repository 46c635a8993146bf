from fastapi import APIRouter, Depends, Query, status, Request, Path
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Any, Dict, List, Optional

from coursedesk.core.database import get_session
from coursedesk.core.dependencies import require_admin, require_site_access
from coursedesk.core.limits import limiter
from coursedesk.fees.schemas.courses import (
    CourseCreate,
    CourseUpdate,
    CourseRead,
    CourseDeleteResponse,
)
from coursedesk.fees.schemas.fees import EffectiveFeesResponse
from coursedesk.fees.crud.courses import (
    get_courses,
    get_course_by_id,
    create_course,
    update_course,
    delete_course,
)
from coursedesk.fees.crud.custom_fees import find_matching_custom_fee
from coursedesk.fees.services.fee_engine import resolve_effective_fees

router = APIRouter(prefix="/courses", tags=["Courses"])


@router.get("/", response_model=List[CourseRead])
@limiter.limit("60/minute")
async def list_courses(
    request: Request,
    include_inactive: bool = Query(False, description="Include deactivated courses"),
    current_user: Dict[str, Any] = Depends(require_site_access),
    db: AsyncSession = Depends(get_session),
):
    """
    Course catalogue ordered by name.

    - **include_inactive**: Also list deactivated courses (default: false)
    """
    return await get_courses(db, include_inactive=include_inactive)


@router.get("/{course_id}", response_model=CourseRead)
@limiter.limit("60/minute")
async def get_course(
    request: Request,
    course_id: int = Path(..., description="Course ID"),
    current_user: Dict[str, Any] = Depends(require_site_access),
    db: AsyncSession = Depends(get_session),
):
    """Course details by ID"""
    return await get_course_by_id(db, course_id)


@router.get("/{course_id}/effective-fees", response_model=EffectiveFeesResponse)
@limiter.limit("60/minute")
async def get_effective_fees(
    request: Request,
    course_id: int = Path(..., description="Course ID"),
    student_name: Optional[str] = Query(None, description="Student name as it will be enrolled"),
    contact_no: Optional[str] = Query(None, description="Student contact number"),
    current_user: Dict[str, Any] = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    """
    Fee figures that apply to one student.

    Each figure comes from the student's active custom fee when it sets
    one, and from the course default otherwise. Without a student the
    course defaults are returned.
    """
    course = await get_course_by_id(db, course_id)

    custom_fee = None
    if student_name and contact_no:
        custom_fee = await find_matching_custom_fee(db, student_name, contact_no, course_id)

    effective = resolve_effective_fees(course, custom_fee)

    return EffectiveFeesResponse(
        course_id=course_id,
        student_name=student_name,
        contact_no=contact_no,
        full_fee=effective.full_fee,
        installment_fee=effective.installment_fee,
        installment1=effective.installment1,
        installment2=effective.installment2,
        has_custom_fee=custom_fee is not None,
        custom_fee_id=custom_fee.id if custom_fee else None,
        reason=custom_fee.reason if custom_fee else None,
    )


@router.post("/", response_model=CourseRead, status_code=status.HTTP_201_CREATED)
@limiter.limit("10/minute")
async def create_new_course(
    request: Request,
    course: CourseCreate,
    current_user: Dict[str, Any] = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    """
    Create a course.

    - **name**: Course name (required)
    - **code**: Unique course code (required)
    - **duration**: Duration in months (required)
    - **full_fee**: One-time payment fee (required)
    - **installment_fee**: Total payable on the installment plan (required)
    - **installment1** / **installment2**: Installment split (default 0)
    - **fee_plans**: Free-form plan descriptions
    - **is_active**: Listed in the catalogue (default: true)
    """
    return await create_course(db, course)


@router.patch("/{course_id}", response_model=CourseRead)
@limiter.limit("20/minute")
async def update_existing_course(
    request: Request,
    course_data: CourseUpdate,
    course_id: int = Path(..., description="Course ID"),
    current_user: Dict[str, Any] = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    """
    Update a course. Only provided fields are changed.

    Enrollments keep the total fee frozen when they were created.
    """
    return await update_course(db, course_id, course_data)


@router.delete("/{course_id}", response_model=CourseDeleteResponse)
@limiter.limit("10/minute")
async def delete_existing_course(
    request: Request,
    course_id: int = Path(..., description="Course ID"),
    current_user: Dict[str, Any] = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    """
    Delete a course.

    A course still referenced by inquiries, enrollments or custom fees is
    deactivated instead, so those records keep their course.
    """
    deleted, deactivated = await delete_course(db, course_id)

    return CourseDeleteResponse(
        id=course_id,
        deleted=deleted,
        deactivated=deactivated,
        message="Course deleted" if deleted else "Course is in use and was deactivated",
    )
