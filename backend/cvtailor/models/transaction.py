import enum
import uuid

from sqlalchemy import Column, String, DateTime, Integer, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..database import Base


class TransactionType(str, enum.Enum):
    CV_GENERATION = "cv_generation"
    LINKEDIN_EXPORT = "linkedin_export"
    MOTIVATION_LETTER = "motivation_letter"
    MONTHLY_FREE = "monthly_free"
    PURCHASE = "purchase"
    REFUND = "refund"


class CreditTransaction(Base):
    __tablename__ = "credit_transactions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(128), ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    amount = Column(Integer, nullable=False)
    type = Column(SQLEnum(TransactionType), nullable=False)
    description = Column(String(500), nullable=True)
    cv_id = Column(String(36), nullable=True)
    profile_id = Column(String(36), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("User", back_populates="transactions")
