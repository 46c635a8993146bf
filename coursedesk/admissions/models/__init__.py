from coursedesk.core.database import Base
from .inquiries import Inquiry, InquiryStatus
from .enrollments import Enrollment, FeePlan

__all__ = [
    "Base",
    "Inquiry",
    "InquiryStatus",
    "Enrollment",
    "FeePlan",
]
