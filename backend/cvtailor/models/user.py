from sqlalchemy import Column, Integer, String, DateTime, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..database import Base


class User(Base):
    __tablename__ = "users"

    # Identity-provider uid
    id = Column(String(128), primary_key=True, index=True)
    email = Column(String(255), index=True, nullable=True)
    display_name = Column(String(255), nullable=True)

    # Credits
    credits_free = Column(Integer, default=0, nullable=False)
    credits_purchased = Column(Integer, default=0, nullable=False)
    last_free_reset = Column(DateTime(timezone=True), nullable=True)

    # Personal LLM API key (AES-GCM encrypted)
    api_key_encrypted = Column(Text, nullable=True)
    api_key_provider = Column(String(50), nullable=True)
    api_key_model = Column(String(200), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    profiles = relationship("SavedProfile", back_populates="user", cascade="all, delete-orphan")
    templates = relationship("CVTemplate", back_populates="user", cascade="all, delete-orphan")
    transactions = relationship("CreditTransaction", back_populates="user", cascade="all, delete-orphan")
    cvs = relationship("GeneratedCV", back_populates="user", cascade="all, delete-orphan")

    @property
    def total_credits(self) -> int:
        return (self.credits_free or 0) + (self.credits_purchased or 0)
