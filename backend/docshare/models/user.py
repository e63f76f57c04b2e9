import uuid

from sqlalchemy import Boolean, Column, DateTime, String

from docshare.core.database import Base
from docshare.utils.dates import utcnow


class User(Base):
    __tablename__ = "users"
    
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String, nullable=False, default="")
    email = Column(String, unique=True, index=True)
    hashed_password = Column(String)
    role = Column(String(32), nullable=False, default="Member")
    created_at = Column(DateTime, default=utcnow)
    is_active = Column(Boolean, default=True)
