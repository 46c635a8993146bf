import logging
from typing import List, Optional, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy import func

from coursedesk.core.database import db_operation
from coursedesk.core.exceptions import NotFoundError, DuplicateError
from coursedesk.core.logging_utils import log_business_event
from coursedesk.fees.models.courses import Course
from coursedesk.fees.models.custom_fees import CustomStudentFee
from coursedesk.admissions.models.inquiries import Inquiry
from coursedesk.admissions.models.enrollments import Enrollment
from coursedesk.fees.schemas.courses import CourseCreate, CourseUpdate

logger = logging.getLogger(__name__)


@db_operation
async def get_courses(session: AsyncSession, include_inactive: bool = False) -> List[Course]:
    """Courses ordered by name, active ones only unless asked otherwise"""
    query = select(Course)
    if not include_inactive:
        query = query.where(Course.is_active == True)

    result = await session.execute(query.order_by(Course.name, Course.id))
    return list(result.scalars().all())


@db_operation
async def get_course_by_id(session: AsyncSession, course_id: int) -> Course:
    result = await session.execute(select(Course).where(Course.id == course_id))
    course = result.scalar_one_or_none()

    if not course:
        raise NotFoundError("Course", str(course_id))

    return course


async def get_course_by_code(session: AsyncSession, code: str) -> Optional[Course]:
    result = await session.execute(select(Course).where(Course.code == code))
    return result.scalar_one_or_none()


@db_operation
async def create_course(session: AsyncSession, course_data: CourseCreate) -> Course:
    if await get_course_by_code(session, course_data.code):
        raise DuplicateError("Course", "code", course_data.code)

    course = Course(**course_data.model_dump())
    session.add(course)
    await session.commit()
    await session.refresh(course)

    log_business_event("course_created", "course", course.id, {"code": course.code})
    return course


@db_operation
async def update_course(
    session: AsyncSession, course_id: int, course_data: CourseUpdate
) -> Course:
    """
    Update a course.
    Existing enrollments keep their frozen total_fee.
    """
    course = await get_course_by_id(session, course_id)
    update_data = course_data.model_dump(exclude_unset=True)

    new_code = update_data.get("code")
    if new_code and new_code != course.code:
        existing = await get_course_by_code(session, new_code)
        if existing and existing.id != course.id:
            raise DuplicateError("Course", "code", new_code)

    for field, value in update_data.items():
        setattr(course, field, value)

    await session.commit()
    await session.refresh(course)

    log_business_event(
        "course_updated", "course", course.id, {"fields": sorted(update_data.keys())}
    )
    return course


async def count_course_references(session: AsyncSession, course_id: int) -> int:
    """Inquiries, enrollments and custom fees pointing at the course"""
    total = 0
    for model in (Inquiry, Enrollment, CustomStudentFee):
        result = await session.execute(
            select(func.count(model.id)).where(model.course_id == course_id)
        )
        total += result.scalar() or 0
    return total


@db_operation
async def delete_course(session: AsyncSession, course_id: int) -> Tuple[bool, bool]:
    """
    Delete a course, or deactivate it when anything still references it.

    Returns:
        (deleted, deactivated)
    """
    course = await get_course_by_id(session, course_id)
    references = await count_course_references(session, course_id)

    if references:
        course.is_active = False
        await session.commit()
        logger.info(
            f"Course {course_id} is referenced by {references} row(s), deactivated instead of deleted"
        )
        log_business_event(
            "course_deactivated", "course", course_id, {"references": references}
        )
        return False, True

    await session.delete(course)
    await session.commit()
    log_business_event("course_deleted", "course", course_id)
    return True, False
