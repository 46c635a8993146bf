"""Payment schemas"""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List
from datetime import date, datetime
from decimal import Decimal

from coursedesk.fees.models.payments import PaymentMode


class PaymentCreate(BaseModel):
    """Record a payment against an enrollment"""
    enrollment_id: int
    amount: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    payment_date: date = Field(default_factory=date.today)
    payment_mode: PaymentMode
    transaction_id: Optional[str] = Field(None, max_length=255)
    installment_number: Optional[int] = Field(None, ge=1)
    notes: Optional[str] = Field(None, max_length=1000)


class PaymentRead(BaseModel):
    id: int
    enrollment_id: int
    amount: Decimal
    payment_date: date
    payment_mode: PaymentMode
    transaction_id: Optional[str] = None
    installment_number: Optional[int] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class PaymentWithStudent(PaymentRead):
    """Payment row as listed in the payments register"""
    student_name: str
    contact_no: str
    course_id: int
    course_name: str


class PaymentListResponse(BaseModel):
    """Paginated payments register"""
    payments: List[PaymentWithStudent]
    total: int
    page: int
    size: int
    pages: int
    total_amount: Decimal = Field(..., description="Sum of amounts across all matching payments")
