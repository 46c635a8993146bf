from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional
from pydantic import BaseModel, Field

from coursedesk.fees.services.fee_engine import PaymentStatus
from coursedesk.fees.schemas.courses import CourseBrief


class EffectiveFeesResponse(BaseModel):
    """Fee figures that apply to one student on one course"""
    course_id: int
    student_name: Optional[str] = None
    contact_no: Optional[str] = None
    full_fee: Decimal
    installment_fee: Decimal
    installment1: Decimal
    installment2: Decimal
    has_custom_fee: bool
    custom_fee_id: Optional[int] = None
    reason: Optional[str] = None


class FeeOverviewItem(BaseModel):
    enrollment_id: int
    student_name: str
    contact_no: str
    course: CourseBrief
    fee_plan: str
    start_date: date
    total_fee: Decimal
    paid_amount: Decimal
    balance: Decimal
    status: PaymentStatus
    payments_count: int
    cancelled: bool


class FeeOverviewResponse(BaseModel):
    """Every enrollment with its payment status, overdue detection on"""
    items: List[FeeOverviewItem]
    total: int
    total_fee: Decimal
    total_paid: Decimal
    total_balance: Decimal
    status_counts: Dict[str, int] = Field(default_factory=dict)
