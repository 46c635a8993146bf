"""Fee Schemas Package"""
from .courses import (
    CourseCreate,
    CourseUpdate,
    CourseRead,
    CourseBrief,
    CourseDeleteResponse,
)

from .custom_fees import (
    CustomFeeCreate,
    CustomFeeUpdate,
    CustomFeeRead,
    CustomFeeListResponse,
    CustomFeeCheckResponse,
    CustomFeeWriteResponse,
    ResyncReport,
)

from .payments import (
    PaymentCreate,
    PaymentRead,
    PaymentWithStudent,
    PaymentListResponse,
)

from .fees import EffectiveFeesResponse, FeeOverviewItem, FeeOverviewResponse
