from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    Boolean,
    ForeignKey,
    Numeric,
    DateTime,
    Index,
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from coursedesk.core.database import Base


class CustomStudentFee(Base):
    """Per-student fee override for one course"""

    __tablename__ = "custom_student_fees"

    id = Column(Integer, primary_key=True)

    # Matching key: student_name + contact_no + course_id
    student_name = Column(String(200), nullable=False)
    contact_no = Column(String(20), nullable=False)
    course_id = Column(
        Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False
    )

    # NULL means "use the course default" for that figure
    custom_full_fee = Column(Numeric(10, 2), nullable=True)
    custom_installment_fee = Column(Numeric(10, 2), nullable=True)
    custom_installment1 = Column(Numeric(10, 2), nullable=True)
    custom_installment2 = Column(Numeric(10, 2), nullable=True)
    custom_fee_plans = Column(Text, nullable=True)

    # scholarship, discount, financial_assistance, ...
    reason = Column(Text, nullable=False)
    created_by = Column(String(100), nullable=False, default="Admin")

    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    # Relations
    course = relationship("Course", back_populates="custom_fees")

    __table_args__ = (
        Index("ix_custom_student_fees_student", "student_name", "contact_no", "course_id"),
    )

    def __repr__(self):
        return (
            f"<CustomStudentFee(id={self.id}, student='{self.student_name}', "
            f"course_id={self.course_id}, active={self.is_active})>"
        )
