from datetime import datetime
from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from coursedesk.core.exceptions import ValidationError
from coursedesk.core.validations import clean_contact_number, validate_batch_id
from coursedesk.admissions.models.inquiries import InquiryStatus
from coursedesk.fees.schemas.courses import CourseBrief


class BatchRead(BaseModel):
    id: str
    name: str
    time: str


class InquiryBase(BaseModel):
    student_name: str = Field(..., min_length=1, max_length=200)
    course_id: int = Field(..., gt=0)
    contact_no: str = Field(..., description="10-digit mobile number")
    father_contact_no: str = Field(..., description="10-digit mobile number")
    address: str = Field(..., min_length=1, max_length=1000)
    batch_id: str = Field(..., description="batch1 .. batch7")

    model_config = ConfigDict(str_strip_whitespace=True)

    @field_validator("student_name")
    @classmethod
    def validate_student_name(cls, v):
        if not v or not v.strip():
            raise ValidationError("Student name cannot be empty")
        return v.strip()

    @field_validator("contact_no")
    @classmethod
    def validate_contact(cls, v):
        return clean_contact_number(v)

    @field_validator("father_contact_no")
    @classmethod
    def validate_father_contact(cls, v):
        return clean_contact_number(v, "Father's contact number")

    @field_validator("batch_id")
    @classmethod
    def validate_batch(cls, v):
        return validate_batch_id(v)


class InquiryCreate(InquiryBase):
    status: InquiryStatus = Field(default=InquiryStatus.pending)


class InquiryUpdate(BaseModel):
    student_name: Optional[str] = Field(None, min_length=1, max_length=200)
    course_id: Optional[int] = Field(None, gt=0)
    contact_no: Optional[str] = None
    father_contact_no: Optional[str] = None
    address: Optional[str] = Field(None, min_length=1, max_length=1000)
    batch_id: Optional[str] = None
    status: Optional[InquiryStatus] = None

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

    @field_validator("batch_id")
    @classmethod
    def validate_batch(cls, v):
        return validate_batch_id(v)


class InquiryStatusUpdate(BaseModel):
    status: InquiryStatus


class InquiryRead(BaseModel):
    id: int
    student_name: str
    course_id: int
    contact_no: str
    father_contact_no: str
    address: str
    batch_id: str
    status: InquiryStatus
    course: Optional[CourseBrief] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class InquiryListResponse(BaseModel):
    """Paginated list of inquiries"""
    inquiries: List[InquiryRead]
    total: int
    page: int
    size: int
    pages: int
    filters: Optional[dict] = None


class InquiryBulkAction(BaseModel):
    ids: List[int] = Field(..., min_length=1, max_length=500)
    action: Literal["update_status", "delete"]
    status: Optional[InquiryStatus] = None

    @model_validator(mode="after")
    def check_status_for_update(self):
        if self.action == "update_status" and self.status is None:
            raise ValidationError("status is required for update_status")
        return self


class BulkActionResult(BaseModel):
    action: str
    requested: int
    affected: int
    missing_ids: List[int] = Field(default_factory=list)
