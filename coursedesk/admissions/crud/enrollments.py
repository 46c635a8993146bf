import logging
from datetime import date
from typing import Dict, List, Optional
from dateutil.relativedelta import relativedelta
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload
from sqlalchemy import and_, or_

from coursedesk.core.database import db_operation
from coursedesk.core.exceptions import NotFoundError, BusinessLogicError
from coursedesk.core.logging_utils import log_business_event
from coursedesk.admissions.models.enrollments import Enrollment
from coursedesk.admissions.models.inquiries import Inquiry, InquiryStatus
from coursedesk.admissions.schemas.enrollments import EnrollmentCreate, EnrollmentUpdate
from coursedesk.admissions.schemas.inquiries import BulkActionResult
from coursedesk.fees.models.courses import Course
from coursedesk.fees.crud.courses import get_course_by_id
from coursedesk.fees.crud.custom_fees import find_matching_custom_fee
from coursedesk.fees.services.fee_engine import resolve_effective_fees, snapshot_total_fee

logger = logging.getLogger(__name__)

# Columns that can never be cleared through an update
REQUIRED_FIELDS = {
    "student_name",
    "contact_no",
    "course_id",
    "batch_id",
    "father_name",
    "father_contact_no",
    "student_education",
    "student_email",
    "student_address",
    "start_date",
    "fee_plan",
    "cancelled",
}


def calculate_end_date(start_date: date, duration_months: int) -> date:
    """start_date plus the course duration in calendar months (clamped to month end)"""
    return start_date + relativedelta(months=duration_months)


def _with_details(query):
    return query.options(
        selectinload(Enrollment.course),
        selectinload(Enrollment.payments),
    )


@db_operation
async def get_enrollment_by_id(session: AsyncSession, enrollment_id: int) -> Enrollment:
    """Enrollment with course and payments loaded"""
    result = await session.execute(
        _with_details(select(Enrollment))
        .where(Enrollment.id == enrollment_id)
        .execution_options(populate_existing=True)
    )
    enrollment = result.scalar_one_or_none()

    if not enrollment:
        raise NotFoundError("Enrollment", str(enrollment_id))

    return enrollment


@db_operation
async def get_enrollments(
    session: AsyncSession,
    course_id: Optional[int] = None,
    batch_id: Optional[str] = None,
    search: Optional[str] = None,
    include_cancelled: bool = True,
    enrollment_ids: Optional[List[int]] = None,
) -> List[Enrollment]:
    """Enrollments with course and payments, newest first"""
    query = _with_details(select(Enrollment))

    conditions = []

    if course_id:
        conditions.append(Enrollment.course_id == course_id)

    if batch_id:
        conditions.append(Enrollment.batch_id == batch_id)

    if search:
        conditions.append(
            or_(
                Enrollment.student_name.ilike(f"%{search}%"),
                Enrollment.contact_no.ilike(f"%{search}%"),
            )
        )

    if not include_cancelled:
        conditions.append(Enrollment.cancelled == False)

    if enrollment_ids is not None:
        conditions.append(Enrollment.id.in_(enrollment_ids))

    if conditions:
        query = query.where(and_(*conditions))

    result = await session.execute(
        query.order_by(Enrollment.created_at.desc(), Enrollment.id.desc())
    )
    return list(result.scalars().all())


async def get_enrollment_for_inquiry(
    session: AsyncSession, inquiry_id: int
) -> Optional[Enrollment]:
    result = await session.execute(
        select(Enrollment).where(Enrollment.inquiry_id == inquiry_id)
    )
    return result.scalar_one_or_none()


async def resolve_total_fee(
    session: AsyncSession,
    course: Course,
    student_name: str,
    contact_no: str,
    fee_plan: str,
):
    """Snapshot of the fee the student owes under fee_plan right now"""
    custom_fee = await find_matching_custom_fee(session, student_name, contact_no, course.id)
    effective = resolve_effective_fees(course, custom_fee)
    return snapshot_total_fee(effective, fee_plan), custom_fee


@db_operation
async def create_enrollment(
    session: AsyncSession, enrollment_data: EnrollmentCreate
) -> Enrollment:
    """
    Convert an inquiry into an enrollment.

    Freezes total_fee from the effective fees for the chosen plan, sets
    end_date from the course duration and marks the inquiry as enrolled,
    all in one commit.
    """
    result = await session.execute(
        select(Inquiry).where(Inquiry.id == enrollment_data.inquiry_id)
    )
    inquiry = result.scalar_one_or_none()
    if not inquiry:
        raise NotFoundError("Inquiry", str(enrollment_data.inquiry_id))

    existing = await get_enrollment_for_inquiry(session, inquiry.id)
    if existing:
        raise BusinessLogicError(
            "Inquiry already has an enrollment",
            {"inquiry_id": inquiry.id, "enrollment_id": existing.id},
        )

    course = await get_course_by_id(session, enrollment_data.course_id or inquiry.course_id)

    data = enrollment_data.model_dump()
    data["student_name"] = data["student_name"] or inquiry.student_name
    data["contact_no"] = data["contact_no"] or inquiry.contact_no
    data["batch_id"] = data["batch_id"] or inquiry.batch_id
    data["course_id"] = course.id
    data["fee_plan"] = enrollment_data.fee_plan.value

    total_fee, custom_fee = await resolve_total_fee(
        session, course, data["student_name"], data["contact_no"], data["fee_plan"]
    )

    enrollment = Enrollment(
        **data,
        end_date=calculate_end_date(enrollment_data.start_date, course.duration),
        total_fee=total_fee,
        cancelled=False,
    )
    session.add(enrollment)

    inquiry.status = InquiryStatus.enrolled.value

    await session.commit()

    log_business_event(
        "enrollment_created",
        "enrollment",
        enrollment.id,
        {
            "inquiry_id": inquiry.id,
            "course_id": course.id,
            "fee_plan": enrollment.fee_plan,
            "total_fee": str(total_fee),
            "custom_fee_id": custom_fee.id if custom_fee else None,
        },
    )
    return await get_enrollment_by_id(session, enrollment.id)


@db_operation
async def update_enrollment(
    session: AsyncSession, enrollment_id: int, enrollment_data: EnrollmentUpdate
) -> Enrollment:
    """
    Update an enrollment.

    An explicit total_fee is stored as given. Otherwise changing the fee
    plan or the course re-freezes total_fee from the current effective
    fees. Changing the start date or the course recomputes end_date.
    """
    enrollment = await get_enrollment_by_id(session, enrollment_id)

    update_data = {
        field: value
        for field, value in enrollment_data.model_dump(exclude_unset=True).items()
        if not (field in REQUIRED_FIELDS and value is None)
    }
    manual_total = update_data.pop("total_fee", None)

    if "fee_plan" in update_data:
        update_data["fee_plan"] = update_data["fee_plan"].value

    def changed(field: str) -> bool:
        return field in update_data and update_data[field] != getattr(enrollment, field)

    course_changed = changed("course_id")
    plan_changed = changed("fee_plan")
    start_changed = changed("start_date")

    course = enrollment.course
    if course_changed:
        course = await get_course_by_id(session, update_data["course_id"])

    for field, value in update_data.items():
        setattr(enrollment, field, value)

    if course_changed:
        enrollment.course = course

    if manual_total is not None:
        enrollment.total_fee = manual_total
    elif plan_changed or course_changed:
        enrollment.total_fee, _ = await resolve_total_fee(
            session,
            course,
            enrollment.student_name,
            enrollment.contact_no,
            enrollment.fee_plan,
        )

    if start_changed or course_changed:
        enrollment.end_date = calculate_end_date(enrollment.start_date, course.duration)

    await session.commit()

    log_business_event(
        "enrollment_updated",
        "enrollment",
        enrollment_id,
        {
            "fields": sorted(update_data.keys()),
            "total_fee_override": manual_total is not None,
        },
    )
    return await get_enrollment_by_id(session, enrollment_id)


async def _load_enrollments_for_delete(
    session: AsyncSession, enrollment_ids: List[int]
) -> List[Enrollment]:
    result = await session.execute(
        select(Enrollment)
        .options(selectinload(Enrollment.payments))
        .where(Enrollment.id.in_(enrollment_ids))
    )
    return list(result.scalars().all())


@db_operation
async def delete_enrollment(session: AsyncSession, enrollment_id: int) -> Dict[str, int]:
    """Delete an enrollment and its payments in one transaction"""
    enrollments = await _load_enrollments_for_delete(session, [enrollment_id])
    if not enrollments:
        raise NotFoundError("Enrollment", str(enrollment_id))

    counts = {"enrollments": 1, "payments": len(enrollments[0].payments)}

    await session.delete(enrollments[0])
    await session.commit()

    log_business_event("enrollment_deleted", "enrollment", enrollment_id, counts)
    return counts


@db_operation
async def bulk_delete_enrollments(
    session: AsyncSession, enrollment_ids: List[int]
) -> BulkActionResult:
    requested_ids = list(dict.fromkeys(enrollment_ids))
    enrollments = await _load_enrollments_for_delete(session, requested_ids)

    found_ids = {enrollment.id for enrollment in enrollments}
    payments = sum(len(enrollment.payments) for enrollment in enrollments)

    for enrollment in enrollments:
        await session.delete(enrollment)

    await session.commit()

    log_business_event(
        "enrollments_bulk_delete",
        "enrollment",
        None,
        {"ids": sorted(found_ids), "payments": payments},
    )

    return BulkActionResult(
        action="delete",
        requested=len(requested_ids),
        affected=len(found_ids),
        missing_ids=[i for i in requested_ids if i not in found_ids],
    )
