"""
Custom fee re-sync.

Re-freezes Enrollment.total_fee for every enrollment of one student on one
course after their override changes. Each enrollment is committed on its
own: a failure is reported and the rest carry on, earlier updates stay.
"""
import logging
from sqlalchemy import and_, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from coursedesk.core.logging_utils import error_tracker, log_business_event
from coursedesk.admissions.models.enrollments import Enrollment
from coursedesk.fees.crud.courses import get_course_by_id
from coursedesk.fees.crud.custom_fees import find_matching_custom_fee
from coursedesk.fees.schemas.custom_fees import ResyncReport
from coursedesk.fees.services.fee_engine import (
    resolve_effective_fees,
    snapshot_total_fee,
    to_decimal,
)

logger = logging.getLogger(__name__)


async def resync_enrollment_fees(
    session: AsyncSession, student_name: str, contact_no: str, course_id: int
) -> ResyncReport:
    """
    Recompute total_fee for the student's enrollments on the course.

    Uses the currently matching active override (course defaults when there
    is none) and each enrollment's own fee_plan. Enrollments of other
    students or other courses are never touched.
    """
    course = await get_course_by_id(session, course_id)
    custom_fee = await find_matching_custom_fee(session, student_name, contact_no, course_id)
    effective = resolve_effective_fees(course, custom_fee)
    custom_fee_id = custom_fee.id if custom_fee else None

    # Plain rows, so a rollback below cannot expire anything we still need
    result = await session.execute(
        select(Enrollment.id, Enrollment.fee_plan, Enrollment.total_fee)
        .where(
            and_(
                Enrollment.student_name == student_name,
                Enrollment.contact_no == contact_no,
                Enrollment.course_id == course_id,
            )
        )
        .order_by(Enrollment.id)
    )
    rows = result.all()

    report = ResyncReport(matched=len(rows))

    for enrollment_id, fee_plan, current_total in rows:
        try:
            new_total = snapshot_total_fee(effective, fee_plan)

            if to_decimal(current_total) == new_total:
                report.unchanged += 1
                continue

            await session.execute(
                update(Enrollment)
                .where(Enrollment.id == enrollment_id)
                .values(total_fee=new_total)
            )
            await session.commit()
            report.updated += 1

            logger.info(
                f"Enrollment {enrollment_id} total_fee {current_total} -> {new_total}"
            )

        except (SQLAlchemyError, ValueError) as e:
            await session.rollback()
            report.failed_enrollment_ids.append(enrollment_id)

            logger.error(f"Failed to re-sync enrollment {enrollment_id}: {str(e)}")
            error_tracker.track_error(
                error_type="FEE_RESYNC_FAILED",
                error_message=str(e),
                context={"enrollment_id": enrollment_id, "course_id": course_id},
            )

    log_business_event(
        "custom_fee_resync",
        "course",
        course_id,
        {
            "student_name": student_name,
            "contact_no": contact_no,
            "custom_fee_id": custom_fee_id,
            **report.model_dump(),
        },
    )
    return report
