"""Enrollment - a confirmed registration created from one inquiry"""
from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    DateTime,
    Date,
    ForeignKey,
    Numeric,
    Boolean,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from enum import Enum
from coursedesk.core.database import Base


class FeePlan(str, Enum):
    """Which effective figure is frozen into total_fee"""
    full = "full"
    installments = "installments"


class Enrollment(Base):
    __tablename__ = "enrollments"

    id = Column(Integer, primary_key=True, index=True)

    # At most one enrollment per inquiry
    inquiry_id = Column(
        Integer,
        ForeignKey("inquiries.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )

    # Student identity, also the custom fee matching key
    student_name = Column(String(200), nullable=False)
    contact_no = Column(String(20), nullable=False, index=True)
    course_id = Column(Integer, ForeignKey("courses.id"), nullable=False, index=True)

    father_name = Column(String(200), nullable=False)
    father_contact_no = Column(String(20), nullable=False)
    student_education = Column(String(200), nullable=False)
    student_email = Column(String(255), nullable=False)
    student_address = Column(Text, nullable=False)

    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)

    fee_plan = Column(String(20), nullable=False, default=FeePlan.full.value)

    # Snapshot of the effective fee for fee_plan; changes only on explicit
    # edit or custom fee re-sync
    total_fee = Column(Numeric(10, 2), nullable=False)

    batch_id = Column(String(20), nullable=False)

    cancelled = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    # Relationships
    inquiry = relationship("Inquiry", back_populates="enrollment")
    course = relationship("Course", back_populates="enrollments")
    payments = relationship(
        "Payment",
        back_populates="enrollment",
        cascade="all, delete-orphan",
        order_by="Payment.payment_date.desc()",
    )

    def __repr__(self):
        return f"<Enrollment(id={self.id}, student='{self.student_name}', total_fee={self.total_fee})>"
