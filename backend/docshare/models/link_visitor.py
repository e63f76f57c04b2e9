import uuid

from sqlalchemy import Column, DateTime, ForeignKey, String
from sqlalchemy.orm import relationship

from docshare.core.database import Base
from docshare.utils.dates import utcnow


class LinkVisitor(Base):
    __tablename__ = "link_visitors"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    link_id = Column(String(36), ForeignKey("links.id"), index=True, nullable=False)
    first_name = Column(String, nullable=False, default="")
    last_name = Column(String, nullable=False, default="")
    email = Column(String, nullable=True, index=True)
    created_at = Column(DateTime, default=utcnow)

    link = relationship("Link", back_populates="visitors")

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)
