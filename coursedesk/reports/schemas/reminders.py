from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field


class ReminderRequest(BaseModel):
    enrollment_id: int = Field(..., gt=0)


class BulkReminderRequest(BaseModel):
    """Omit enrollment_ids to remind every student with a balance"""
    enrollment_ids: Optional[List[int]] = Field(None, max_length=1000)


class ReminderResponse(BaseModel):
    success: bool
    message: str
    enrollment_id: int
    sent_to: str
    student_name: str
    course_name: str
    pending_amount: Decimal
    provider: str
    error: Optional[str] = None
    timestamp: datetime


class BulkReminderResult(BaseModel):
    enrollment_id: int
    student_name: str
    contact_no: str
    course_name: str
    pending_amount: Decimal
    sent: bool
    provider: str
    error: Optional[str] = None


class BulkReminderResponse(BaseModel):
    success: bool
    message: str
    sent_count: int
    success_count: int
    results: List[BulkReminderResult]
    timestamp: datetime
