import uuid

from sqlalchemy import Boolean, Column, DateTime, String, Text

from app.database import Base, utcnow

PROJECT_TYPES = ("Consultation", "Development", "MEL Implementation", "Training")
CONTACT_METHODS = ("Email", "Phone", "WhatsApp")


class ContactRequest(Base):
    __tablename__ = "contact_requests"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    project_type = Column(String(50))
    preferred_contact = Column(String(20))
    message = Column(Text, nullable=False)
    is_read = Column(Boolean, default=False, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
