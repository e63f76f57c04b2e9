import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from docshare.core.database import Base
from docshare.utils.dates import utcnow


class Document(Base):
    __tablename__ = "documents"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    file_name = Column(String, index=True)
    file_path = Column(String, nullable=False)
    file_type = Column(String)
    size = Column(Integer)
    user_id = Column(String(36), ForeignKey("users.id"), index=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    uploader = relationship("User", lazy="joined")
    links = relationship("Link", back_populates="document", cascade="all, delete-orphan")
