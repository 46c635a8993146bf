from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field, ConfigDict, field_validator

from coursedesk.core.exceptions import ValidationError
from coursedesk.core.validations import clean_contact_number
from coursedesk.fees.schemas.courses import CourseBrief


def _clean_student_name(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValidationError("Student name cannot be empty")
    return v


class CustomFeeBase(BaseModel):
    """
    Fee override for one student on one course.
    Any custom figure left empty falls back to the course default.
    """
    student_name: str = Field(..., min_length=1, max_length=200)
    contact_no: str = Field(..., description="10-digit mobile number")
    course_id: int
    custom_full_fee: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    custom_installment_fee: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    custom_installment1: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    custom_installment2: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    custom_fee_plans: Optional[str] = None
    reason: str = Field(
        ...,
        min_length=1,
        max_length=500,
        description="scholarship, discount, financial_assistance, ...",
    )
    created_by: str = Field(default="Admin", min_length=1, max_length=100)
    is_active: bool = Field(default=True)

    @field_validator("student_name")
    @classmethod
    def validate_student_name(cls, v):
        return _clean_student_name(v)

    @field_validator("contact_no")
    @classmethod
    def validate_contact(cls, v):
        return clean_contact_number(v)

    # Empty form fields arrive as ""
    @field_validator(
        "custom_full_fee",
        "custom_installment_fee",
        "custom_installment1",
        "custom_installment2",
        mode="before",
    )
    @classmethod
    def empty_string_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class CustomFeeCreate(CustomFeeBase):
    pass


class CustomFeeUpdate(BaseModel):
    student_name: Optional[str] = Field(None, min_length=1, max_length=200)
    contact_no: Optional[str] = None
    course_id: Optional[int] = None
    custom_full_fee: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    custom_installment_fee: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    custom_installment1: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    custom_installment2: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    custom_fee_plans: Optional[str] = None
    reason: Optional[str] = Field(None, min_length=1, max_length=500)
    created_by: Optional[str] = Field(None, min_length=1, max_length=100)
    is_active: Optional[bool] = None

    @field_validator("student_name")
    @classmethod
    def validate_student_name(cls, v):
        if v is None:
            return v
        return _clean_student_name(v)

    @field_validator("contact_no")
    @classmethod
    def validate_contact(cls, v):
        if v is None:
            return v
        return clean_contact_number(v)

    @field_validator(
        "custom_full_fee",
        "custom_installment_fee",
        "custom_installment1",
        "custom_installment2",
        mode="before",
    )
    @classmethod
    def empty_string_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class CustomFeeRead(BaseModel):
    id: int
    student_name: str
    contact_no: str
    course_id: int
    custom_full_fee: Optional[Decimal] = None
    custom_installment_fee: Optional[Decimal] = None
    custom_installment1: Optional[Decimal] = None
    custom_installment2: Optional[Decimal] = None
    custom_fee_plans: Optional[str] = None
    reason: str
    created_by: str
    is_active: bool
    course: Optional[CourseBrief] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class CustomFeeListResponse(BaseModel):
    """Paginated list of custom fees"""
    custom_fees: List[CustomFeeRead]
    total: int
    page: int
    size: int
    pages: int


class CustomFeeCheckResponse(BaseModel):
    has_custom_fee: bool
    custom_fee: Optional[CustomFeeRead] = None


class ResyncReport(BaseModel):
    """Outcome of re-freezing total_fee on a student's enrollments"""
    matched: int = 0
    updated: int = 0
    unchanged: int = 0
    failed_enrollment_ids: List[int] = Field(default_factory=list)


class CustomFeeWriteResponse(BaseModel):
    custom_fee: CustomFeeRead
    sync: ResyncReport
    # Enrollments the override no longer applies to after a PATCH moved it
    previous_sync: Optional[ResyncReport] = None
