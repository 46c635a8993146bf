from sqlalchemy import Column, Integer, String, Text, ForeignKey, DateTime
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from enum import Enum
from coursedesk.core.database import Base


class InquiryStatus(str, Enum):
    """Inquiry progress, advanced by staff in any order"""
    pending = "pending"
    confirmed = "confirmed"
    enrolled = "enrolled"
    books_given = "books_given"
    exam_completed = "exam_completed"
    certificate_issued = "certificate_issued"
    cancelled = "cancelled"


class Inquiry(Base):
    __tablename__ = "inquiries"

    id = Column(Integer, primary_key=True)
    student_name = Column(String(200), nullable=False)
    course_id = Column(Integer, ForeignKey("courses.id"), nullable=False, index=True)
    contact_no = Column(String(20), nullable=False, index=True)
    father_contact_no = Column(String(20), nullable=False)
    address = Column(Text, nullable=False)
    batch_id = Column(String(20), nullable=False)

    status = Column(String(50), nullable=False, default=InquiryStatus.pending.value)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    # Relations
    course = relationship("Course", back_populates="inquiries")
    enrollment = relationship(
        "Enrollment",
        back_populates="inquiry",
        uselist=False,
        cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<Inquiry(id={self.id}, student='{self.student_name}', status='{self.status}')>"
