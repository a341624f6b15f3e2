import enum
import uuid

from sqlalchemy import Column, String, DateTime, Boolean, Integer, JSON, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..database import Base


class TemplateFileType(str, enum.Enum):
    DOCX = "docx"
    PDF = "pdf"


class CVTemplate(Base):
    __tablename__ = "cv_templates"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(128), ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    name = Column(String(255), nullable=False)
    file_name = Column(String(255), nullable=False)
    file_type = Column(SQLEnum(TemplateFileType), nullable=False)
    storage_url = Column(String(1000), nullable=False)
    page_count = Column(Integer, nullable=True)

    # Positioned fields (PDF) and detected placeholders (DOCX)
    fields = Column(JSON, nullable=False, default=list)
    placeholders = Column(JSON, nullable=False, default=list)
    auto_analyzed = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="templates")
