import re
from datetime import date, datetime
from decimal import Decimal
from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from coursedesk.core.exceptions import ValidationError
from coursedesk.core.validations import clean_contact_number, validate_batch_id
from coursedesk.admissions.models.enrollments import Enrollment, FeePlan
from coursedesk.fees.schemas.courses import CourseBrief
from coursedesk.fees.schemas.payments import PaymentRead
from coursedesk.fees.services.fee_engine import PaymentStatus, PaymentSummary

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _clean_email(v: str) -> str:
    v = v.strip()
    if not EMAIL_PATTERN.match(v):
        raise ValidationError("Invalid email address")
    return v.lower()


class EnrollmentCreate(BaseModel):
    """
    Convert an inquiry into an enrollment.
    Student name, contact, course and batch default to the inquiry's.
    total_fee is computed, never taken from the request.
    """
    inquiry_id: int = Field(..., gt=0)
    student_name: Optional[str] = Field(None, min_length=1, max_length=200)
    contact_no: Optional[str] = None
    course_id: Optional[int] = Field(None, gt=0)
    batch_id: Optional[str] = None
    father_name: str = Field(..., min_length=1, max_length=200)
    father_contact_no: str
    student_education: str = Field(..., min_length=1, max_length=200)
    student_email: str = Field(..., max_length=255)
    student_address: str = Field(..., min_length=1, max_length=1000)
    start_date: date
    fee_plan: FeePlan

    model_config = ConfigDict(str_strip_whitespace=True)

    @field_validator("contact_no")
    @classmethod
    def validate_contact(cls, v):
        if v is None:
            return v
        return clean_contact_number(v)

    @field_validator("father_contact_no")
    @classmethod
    def validate_father_contact(cls, v):
        return clean_contact_number(v, "Father's contact number")

    @field_validator("student_email")
    @classmethod
    def validate_email(cls, v):
        return _clean_email(v)

    @field_validator("batch_id")
    @classmethod
    def validate_batch(cls, v):
        return validate_batch_id(v)


class EnrollmentUpdate(BaseModel):
    """
    total_fee given here is stored as a manual override.
    Without it, a fee_plan or course change re-freezes the fee.
    """
    student_name: Optional[str] = Field(None, min_length=1, max_length=200)
    contact_no: Optional[str] = None
    course_id: Optional[int] = Field(None, gt=0)
    batch_id: Optional[str] = None
    father_name: Optional[str] = Field(None, min_length=1, max_length=200)
    father_contact_no: Optional[str] = None
    student_education: Optional[str] = Field(None, min_length=1, max_length=200)
    student_email: Optional[str] = Field(None, max_length=255)
    student_address: Optional[str] = Field(None, min_length=1, max_length=1000)
    start_date: Optional[date] = None
    fee_plan: Optional[FeePlan] = None
    total_fee: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    cancelled: Optional[bool] = None

    model_config = ConfigDict(str_strip_whitespace=True)

    @field_validator("contact_no")
    @classmethod
    def validate_contact(cls, v):
        if v is None:
            return v
        return clean_contact_number(v)

    @field_validator("father_contact_no")
    @classmethod
    def validate_father_contact(cls, v):
        if v is None:
            return v
        return clean_contact_number(v, "Father's contact number")

    @field_validator("student_email")
    @classmethod
    def validate_email(cls, v):
        if v is None:
            return v
        return _clean_email(v)

    @field_validator("batch_id")
    @classmethod
    def validate_batch(cls, v):
        return validate_batch_id(v)


class EnrollmentRead(BaseModel):
    id: int
    inquiry_id: int
    student_name: str
    contact_no: str
    course_id: int
    father_name: str
    father_contact_no: str
    student_education: str
    student_email: str
    student_address: str
    start_date: date
    end_date: date
    fee_plan: FeePlan
    total_fee: Decimal
    batch_id: str
    cancelled: bool
    course: Optional[CourseBrief] = None
    payments: List[PaymentRead] = Field(default_factory=list)
    paid_amount: Decimal
    balance: Decimal
    payment_status: PaymentStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_enrollment(cls, enrollment: Enrollment, summary: PaymentSummary) -> "EnrollmentRead":
        """Enrollment with course and payments loaded, plus its payment summary"""
        return cls(
            id=enrollment.id,
            inquiry_id=enrollment.inquiry_id,
            student_name=enrollment.student_name,
            contact_no=enrollment.contact_no,
            course_id=enrollment.course_id,
            father_name=enrollment.father_name,
            father_contact_no=enrollment.father_contact_no,
            student_education=enrollment.student_education,
            student_email=enrollment.student_email,
            student_address=enrollment.student_address,
            start_date=enrollment.start_date,
            end_date=enrollment.end_date,
            fee_plan=enrollment.fee_plan,
            total_fee=enrollment.total_fee,
            batch_id=enrollment.batch_id,
            cancelled=enrollment.cancelled,
            course=CourseBrief.model_validate(enrollment.course),
            payments=[PaymentRead.model_validate(p) for p in enrollment.payments],
            paid_amount=summary.paid_amount,
            balance=summary.balance,
            payment_status=summary.status,
            created_at=enrollment.created_at,
            updated_at=enrollment.updated_at,
        )


class EnrollmentListResponse(BaseModel):
    """Paginated list of enrollments"""
    enrollments: List[EnrollmentRead]
    total: int
    page: int
    size: int
    pages: int
    filters: Optional[dict] = None


class EnrollmentBulkAction(BaseModel):
    ids: List[int] = Field(..., min_length=1, max_length=500)
    action: Literal["delete"] = "delete"
