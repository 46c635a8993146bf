import logging
from typing import List, Optional, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload
from sqlalchemy import and_, or_, func

from coursedesk.core.database import db_operation
from coursedesk.core.exceptions import NotFoundError, BusinessLogicError
from coursedesk.core.logging_utils import log_business_event
from coursedesk.fees.models.custom_fees import CustomStudentFee
from coursedesk.fees.schemas.custom_fees import CustomFeeCreate, CustomFeeUpdate
from coursedesk.fees.crud.courses import get_course_by_id
from coursedesk.fees.services.fee_engine import select_custom_fee

logger = logging.getLogger(__name__)


@db_operation
async def get_custom_fee_by_id(session: AsyncSession, custom_fee_id: int) -> CustomStudentFee:
    result = await session.execute(
        select(CustomStudentFee)
        .options(selectinload(CustomStudentFee.course))
        .where(CustomStudentFee.id == custom_fee_id)
        .execution_options(populate_existing=True)
    )
    custom_fee = result.scalar_one_or_none()

    if not custom_fee:
        raise NotFoundError("Custom fee", str(custom_fee_id))

    return custom_fee


@db_operation
async def get_custom_fees_paginated(
    session: AsyncSession,
    skip: int = 0,
    limit: int = 50,
    course_id: Optional[int] = None,
    is_active: Optional[bool] = None,
    search: Optional[str] = None,
) -> Tuple[List[CustomStudentFee], int]:
    """Custom fees, newest first"""
    query = select(CustomStudentFee).options(selectinload(CustomStudentFee.course))
    count_query = select(func.count(CustomStudentFee.id))

    conditions = []

    if course_id:
        conditions.append(CustomStudentFee.course_id == course_id)

    if is_active is not None:
        conditions.append(CustomStudentFee.is_active == is_active)

    if search:
        conditions.append(
            or_(
                CustomStudentFee.student_name.ilike(f"%{search}%"),
                CustomStudentFee.contact_no.ilike(f"%{search}%"),
            )
        )

    if conditions:
        query = query.where(and_(*conditions))
        count_query = count_query.where(and_(*conditions))

    count_result = await session.execute(count_query)
    total = count_result.scalar() or 0

    query = query.order_by(CustomStudentFee.id.desc()).offset(skip).limit(limit)
    result = await session.execute(query)

    return list(result.scalars().all()), total


async def get_custom_fee_candidates(
    session: AsyncSession, student_name: str, contact_no: str, course_id: int
) -> List[CustomStudentFee]:
    """Active overrides for the student and course, oldest first"""
    result = await session.execute(
        select(CustomStudentFee)
        .options(selectinload(CustomStudentFee.course))
        .where(
            and_(
                CustomStudentFee.student_name == student_name,
                CustomStudentFee.contact_no == contact_no,
                CustomStudentFee.course_id == course_id,
                CustomStudentFee.is_active == True,
            )
        )
        .order_by(CustomStudentFee.id)
    )
    return list(result.scalars().all())


@db_operation
async def find_matching_custom_fee(
    session: AsyncSession, student_name: str, contact_no: str, course_id: int
) -> Optional[CustomStudentFee]:
    """The override that applies to the student, or None"""
    candidates = await get_custom_fee_candidates(session, student_name, contact_no, course_id)

    if len(candidates) > 1:
        logger.warning(
            f"{len(candidates)} active custom fees match {student_name}/{contact_no} "
            f"on course {course_id}, using id {candidates[0].id}"
        )

    return select_custom_fee(candidates, student_name, contact_no, course_id)


@db_operation
async def create_custom_fee(
    session: AsyncSession, custom_fee_data: CustomFeeCreate
) -> CustomStudentFee:
    await get_course_by_id(session, custom_fee_data.course_id)

    existing = await find_matching_custom_fee(
        session,
        custom_fee_data.student_name,
        custom_fee_data.contact_no,
        custom_fee_data.course_id,
    )
    if existing:
        raise BusinessLogicError(
            "Custom fee already exists for this student and course",
            {"custom_fee_id": existing.id},
        )

    custom_fee = CustomStudentFee(**custom_fee_data.model_dump())
    session.add(custom_fee)
    await session.commit()

    log_business_event(
        "custom_fee_created",
        "custom_fee",
        custom_fee.id,
        {
            "student_name": custom_fee.student_name,
            "course_id": custom_fee.course_id,
            "reason": custom_fee.reason,
        },
    )
    return await get_custom_fee_by_id(session, custom_fee.id)


@db_operation
async def update_custom_fee(
    session: AsyncSession, custom_fee_id: int, custom_fee_data: CustomFeeUpdate
) -> CustomStudentFee:
    custom_fee = await get_custom_fee_by_id(session, custom_fee_id)
    update_data = custom_fee_data.model_dump(exclude_unset=True)

    if "course_id" in update_data and update_data["course_id"] is not None:
        await get_course_by_id(session, update_data["course_id"])

    # Non-nullable fields cannot be cleared
    for field in ("student_name", "contact_no", "course_id", "reason", "created_by", "is_active"):
        if field in update_data and update_data[field] is None:
            del update_data[field]

    student_name = update_data.get("student_name", custom_fee.student_name)
    contact_no = update_data.get("contact_no", custom_fee.contact_no)
    course_id = update_data.get("course_id", custom_fee.course_id)
    is_active = update_data.get("is_active", custom_fee.is_active)

    if is_active:
        candidates = await get_custom_fee_candidates(session, student_name, contact_no, course_id)
        others = [candidate for candidate in candidates if candidate.id != custom_fee.id]
        if others:
            raise BusinessLogicError(
                "Custom fee already exists for this student and course",
                {"custom_fee_id": others[0].id},
            )

    for field, value in update_data.items():
        setattr(custom_fee, field, value)

    await session.commit()

    log_business_event(
        "custom_fee_updated",
        "custom_fee",
        custom_fee_id,
        {"fields": sorted(update_data.keys())},
    )
    return await get_custom_fee_by_id(session, custom_fee_id)


@db_operation
async def delete_custom_fee(session: AsyncSession, custom_fee_id: int) -> None:
    """Remove an override; enrollments keep the total_fee it produced"""
    custom_fee = await get_custom_fee_by_id(session, custom_fee_id)
    details = {"student_name": custom_fee.student_name, "course_id": custom_fee.course_id}

    await session.delete(custom_fee)
    await session.commit()

    log_business_event("custom_fee_deleted", "custom_fee", custom_fee_id, details)
