import uuid

from sqlalchemy import Boolean, Column, DateTime, String

from app.database import Base, utcnow


class NewsletterSubscriber(Base):
    __tablename__ = "newsletter_subscribers"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(255))
    is_active = Column(Boolean, default=True, nullable=False)
    subscribed_at = Column(DateTime(timezone=True), default=utcnow)
    unsubscribed_at = Column(DateTime(timezone=True), nullable=True)
