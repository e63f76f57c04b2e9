import uuid

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from docshare.core.database import Base
from docshare.utils.dates import utcnow


class Link(Base):
    __tablename__ = "links"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    document_id = Column(String(36), ForeignKey("documents.id"), index=True, nullable=False)
    user_id = Column(String(36), ForeignKey("users.id"))
    link_url = Column(String, nullable=False)
    friendly_name = Column(String, nullable=True)
    is_public = Column(Boolean, default=True, nullable=False)
    password = Column(String, nullable=True)
    expiration_time = Column(DateTime, nullable=True)
    required_user_details_option = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=utcnow)

    document = relationship("Document", back_populates="links")
    visitors = relationship("LinkVisitor", back_populates="link", cascade="all, delete-orphan")

    @property
    def password_required(self) -> bool:
        return bool(self.password)

    def is_expired(self, now) -> bool:
        return self.expiration_time is not None and self.expiration_time <= now
