from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
from coursedesk.core.database import Base


class User(Base):
    """Shared login account (admin back office, website gate)"""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    username = Column(String(100), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self):
        return f"<User(id={self.id}, username='{self.username}')>"
