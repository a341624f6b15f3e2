import enum
import uuid

from sqlalchemy import Column, String, DateTime, JSON, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..database import Base


class CVStatus(str, enum.Enum):
    DRAFT = "draft"
    GENERATING = "generating"
    GENERATED = "generated"
    PDF_READY = "pdf_ready"
    FAILED = "failed"


class GeneratedCV(Base):
    __tablename__ = "generated_cvs"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(128), ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    linkedin_data = Column(JSON, nullable=False)
    job_vacancy = Column(JSON, nullable=True)
    style_config = Column(JSON, nullable=True)
    design_tokens = Column(JSON, nullable=True)
    generated_content = Column(JSON, nullable=True)
    motivation_letter = Column(JSON, nullable=True)
    llm_provider = Column(String(50), nullable=True)
    llm_model = Column(String(200), nullable=True)
    status = Column(SQLEnum(CVStatus), default=CVStatus.DRAFT, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="cvs")
