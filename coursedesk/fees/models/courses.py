from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    Boolean,
    Numeric,
    DateTime,
    JSON,
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from coursedesk.core.database import Base


class Course(Base):
    __tablename__ = "courses"

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False)
    code = Column(String(50), nullable=False, unique=True, index=True)

    # Duration in months
    duration = Column(Integer, nullable=False)

    # Default fee schedule
    full_fee = Column(Numeric(10, 2), nullable=False)
    installment_fee = Column(Numeric(10, 2), nullable=False)
    installment1 = Column(Numeric(10, 2), nullable=True, default=0)
    installment2 = Column(Numeric(10, 2), nullable=True, default=0)

    # Free-form plan descriptions shown to staff, never evaluated
    fee_plans = Column(JSON, nullable=False, default=list)

    description = Column(Text, nullable=True)

    # Soft delete flag
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    # Relations
    inquiries = relationship("Inquiry", back_populates="course")
    enrollments = relationship("Enrollment", back_populates="course")
    custom_fees = relationship("CustomStudentFee", back_populates="course")

    def __repr__(self):
        return f"<Course(id={self.id}, code='{self.code}', full_fee={self.full_fee})>"
