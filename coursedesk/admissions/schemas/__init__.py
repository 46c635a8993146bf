"""Admissions Schemas Package"""
from .inquiries import (
    BatchRead,
    InquiryCreate,
    InquiryUpdate,
    InquiryStatusUpdate,
    InquiryRead,
    InquiryListResponse,
    InquiryBulkAction,
    BulkActionResult,
)

from .enrollments import (
    EnrollmentCreate,
    EnrollmentUpdate,
    EnrollmentRead,
    EnrollmentListResponse,
    EnrollmentBulkAction,
)
