from datetime import datetime
from decimal import Decimal
from typing import Any, List, Optional
from pydantic import BaseModel, Field, ConfigDict, field_validator

from coursedesk.core.exceptions import ValidationError


class CourseBase(BaseModel):
    """Base course schema"""
    name: str = Field(..., min_length=1, max_length=200)
    code: str = Field(..., min_length=1, max_length=50)
    duration: int = Field(..., ge=1, le=120, description="Duration in months")
    full_fee: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    installment_fee: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    installment1: Optional[Decimal] = Field(Decimal("0"), ge=0, max_digits=10, decimal_places=2)
    installment2: Optional[Decimal] = Field(Decimal("0"), ge=0, max_digits=10, decimal_places=2)
    fee_plans: List[Any] = Field(default_factory=list, description="Free-form plan descriptions")
    description: Optional[str] = Field(None, max_length=2000)
    is_active: bool = Field(default=True)

    @field_validator("code")
    @classmethod
    def validate_code(cls, v):
        v = v.strip()
        if not v:
            raise ValidationError("Course code cannot be empty")
        return v


class CourseCreate(CourseBase):
    """Schema for creating a course"""
    pass


class CourseUpdate(BaseModel):
    """Schema for updating a course"""
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    code: Optional[str] = Field(None, min_length=1, max_length=50)
    duration: Optional[int] = Field(None, ge=1, le=120)
    full_fee: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    installment_fee: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    installment1: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    installment2: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    fee_plans: Optional[List[Any]] = None
    description: Optional[str] = Field(None, max_length=2000)
    is_active: Optional[bool] = None

    @field_validator("code")
    @classmethod
    def validate_code(cls, v):
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValidationError("Course code cannot be empty")
        return v


class CourseRead(CourseBase):
    """Schema for reading a course"""
    id: int
    fee_plans: Optional[List[Any]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class CourseBrief(BaseModel):
    """Course info embedded in other responses"""
    id: int
    name: str
    code: str
    duration: int
    full_fee: Decimal
    installment_fee: Decimal

    model_config = ConfigDict(from_attributes=True)


class CourseDeleteResponse(BaseModel):
    id: int
    deleted: bool = Field(..., description="True if the row was removed")
    deactivated: bool = Field(..., description="True if the course was only marked inactive")
    message: str
