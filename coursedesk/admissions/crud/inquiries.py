import logging
from typing import Dict, List, Optional, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload
from sqlalchemy import and_, or_, func

from coursedesk.core.database import db_operation
from coursedesk.core.exceptions import NotFoundError
from coursedesk.core.logging_utils import log_business_event
from coursedesk.admissions.models.inquiries import Inquiry, InquiryStatus
from coursedesk.admissions.models.enrollments import Enrollment
from coursedesk.admissions.schemas.inquiries import (
    InquiryCreate,
    InquiryUpdate,
    InquiryBulkAction,
    BulkActionResult,
)
from coursedesk.fees.crud.courses import get_course_by_id

logger = logging.getLogger(__name__)


@db_operation
async def get_inquiry_by_id(session: AsyncSession, inquiry_id: int) -> Inquiry:
    result = await session.execute(
        select(Inquiry)
        .options(selectinload(Inquiry.course))
        .where(Inquiry.id == inquiry_id)
        .execution_options(populate_existing=True)
    )
    inquiry = result.scalar_one_or_none()

    if not inquiry:
        raise NotFoundError("Inquiry", str(inquiry_id))

    return inquiry


@db_operation
async def get_inquiries_paginated(
    session: AsyncSession,
    skip: int = 0,
    limit: int = 50,
    status: Optional[str] = None,
    course_id: Optional[int] = None,
    batch_id: Optional[str] = None,
    search: Optional[str] = None,
) -> Tuple[List[Inquiry], int]:
    """Inquiries, newest first"""
    query = select(Inquiry).options(selectinload(Inquiry.course))
    count_query = select(func.count(Inquiry.id))

    conditions = []

    if status:
        conditions.append(Inquiry.status == status)

    if course_id:
        conditions.append(Inquiry.course_id == course_id)

    if batch_id:
        conditions.append(Inquiry.batch_id == batch_id)

    if search:
        conditions.append(
            or_(
                Inquiry.student_name.ilike(f"%{search}%"),
                Inquiry.contact_no.ilike(f"%{search}%"),
            )
        )

    if conditions:
        query = query.where(and_(*conditions))
        count_query = count_query.where(and_(*conditions))

    count_result = await session.execute(count_query)
    total = count_result.scalar() or 0

    query = (
        query.order_by(Inquiry.created_at.desc(), Inquiry.id.desc())
        .offset(skip)
        .limit(limit)
    )
    result = await session.execute(query)

    return list(result.scalars().all()), total


@db_operation
async def create_inquiry(session: AsyncSession, inquiry_data: InquiryCreate) -> Inquiry:
    await get_course_by_id(session, inquiry_data.course_id)

    data = inquiry_data.model_dump()
    data["status"] = data["status"].value

    inquiry = Inquiry(**data)
    session.add(inquiry)
    await session.commit()

    logger.info(f"Inquiry {inquiry.id} created for course {inquiry.course_id}")
    return await get_inquiry_by_id(session, inquiry.id)


@db_operation
async def update_inquiry(
    session: AsyncSession, inquiry_id: int, inquiry_data: InquiryUpdate
) -> Inquiry:
    inquiry = await get_inquiry_by_id(session, inquiry_id)

    # Every inquiry column is required, None means "leave as is"
    update_data = {
        field: value
        for field, value in inquiry_data.model_dump(exclude_unset=True).items()
        if value is not None
    }

    if "course_id" in update_data:
        await get_course_by_id(session, update_data["course_id"])

    if "status" in update_data:
        update_data["status"] = update_data["status"].value

    for field, value in update_data.items():
        setattr(inquiry, field, value)

    await session.commit()
    return await get_inquiry_by_id(session, inquiry_id)


@db_operation
async def update_inquiry_status(
    session: AsyncSession, inquiry_id: int, status: InquiryStatus
) -> Inquiry:
    inquiry = await get_inquiry_by_id(session, inquiry_id)
    previous = inquiry.status

    inquiry.status = status.value
    await session.commit()

    log_business_event(
        "inquiry_status_changed",
        "inquiry",
        inquiry_id,
        {"from": previous, "to": status.value},
    )
    return await get_inquiry_by_id(session, inquiry_id)


async def _load_inquiries_for_delete(
    session: AsyncSession, inquiry_ids: List[int]
) -> List[Inquiry]:
    # Cascade targets must be loaded up front, lazy loads are not available here
    result = await session.execute(
        select(Inquiry)
        .options(selectinload(Inquiry.enrollment).selectinload(Enrollment.payments))
        .where(Inquiry.id.in_(inquiry_ids))
    )
    return list(result.scalars().all())


def _cascade_counts(inquiries: List[Inquiry]) -> Dict[str, int]:
    enrollments = [inquiry.enrollment for inquiry in inquiries if inquiry.enrollment]
    return {
        "inquiries": len(inquiries),
        "enrollments": len(enrollments),
        "payments": sum(len(enrollment.payments) for enrollment in enrollments),
    }


@db_operation
async def delete_inquiry(session: AsyncSession, inquiry_id: int) -> Dict[str, int]:
    """
    Delete an inquiry together with its enrollment and that enrollment's
    payments, in one transaction.

    Returns:
        Number of deleted rows per entity
    """
    inquiries = await _load_inquiries_for_delete(session, [inquiry_id])
    if not inquiries:
        raise NotFoundError("Inquiry", str(inquiry_id))

    counts = _cascade_counts(inquiries)

    await session.delete(inquiries[0])
    await session.commit()

    log_business_event("inquiry_deleted", "inquiry", inquiry_id, counts)
    return counts


@db_operation
async def bulk_inquiry_action(
    session: AsyncSession, action: InquiryBulkAction
) -> BulkActionResult:
    """Status change or delete for many inquiries, committed once"""
    requested_ids = list(dict.fromkeys(action.ids))

    if action.action == "delete":
        inquiries = await _load_inquiries_for_delete(session, requested_ids)
        counts = _cascade_counts(inquiries)
        for inquiry in inquiries:
            await session.delete(inquiry)
    else:
        result = await session.execute(
            select(Inquiry).where(Inquiry.id.in_(requested_ids))
        )
        inquiries = list(result.scalars().all())
        counts = {"inquiries": len(inquiries)}
        for inquiry in inquiries:
            inquiry.status = action.status.value

    found_ids = {inquiry.id for inquiry in inquiries}
    await session.commit()

    missing_ids = [inquiry_id for inquiry_id in requested_ids if inquiry_id not in found_ids]

    log_business_event(
        f"inquiries_bulk_{action.action}",
        "inquiry",
        None,
        {"ids": sorted(found_ids), **counts},
    )

    return BulkActionResult(
        action=action.action,
        requested=len(requested_ids),
        affected=len(found_ids),
        missing_ids=missing_ids,
    )
