from coursedesk.core.database import Base
from .courses import Course
from .custom_fees import CustomStudentFee
from .payments import Payment, PaymentMode

__all__ = [
    "Base",
    "Course",
    "CustomStudentFee",
    "Payment",
    "PaymentMode",
]
