"""Payment ledger, append-only"""
from sqlalchemy import (
    Column,
    Integer,
    DateTime,
    ForeignKey,
    String,
    Numeric,
    Text,
    Date,
    Enum as SQLEnum,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from enum import Enum
from coursedesk.core.database import Base


class PaymentMode(str, Enum):
    """Payment mode"""
    cash = "cash"
    card = "card"
    upi = "upi"
    bank_transfer = "bank_transfer"
    cheque = "cheque"
    other = "other"


class Payment(Base):
    """One payment received against an enrollment"""
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)

    enrollment_id = Column(
        Integer,
        ForeignKey("enrollments.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    amount = Column(Numeric(10, 2), nullable=False)
    payment_date = Column(Date, nullable=False)
    payment_mode = Column(SQLEnum(PaymentMode), nullable=False)

    # Bank / UPI reference
    transaction_id = Column(String(255), nullable=True)
    installment_number = Column(Integer, nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relations
    enrollment = relationship("Enrollment", back_populates="payments")

    def __repr__(self):
        return f"<Payment(id={self.id}, enrollment_id={self.enrollment_id}, amount={self.amount})>"
