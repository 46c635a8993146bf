from decimal import Decimal
from pydantic import BaseModel, Field


class DashboardStats(BaseModel):
    """Institution-wide totals for the admin dashboard"""
    total_inquiries: int
    enrolled_students: int = Field(..., description="Enrollments that are not cancelled")
    pending_payments: Decimal = Field(..., description="Sum of positive balances")
    overdue_payments: int = Field(..., description="Unpaid enrollments past the grace window")
    total_collected: Decimal
