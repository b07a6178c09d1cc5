import uuid

from sqlalchemy import Boolean, Column, DateTime, String

from app.database import Base, utcnow


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    # Stable subject identifier issued by the identity provider
    provider_sub = Column(String(255), unique=True, index=True, nullable=False)
    email = Column(String(255), index=True)
    first_name = Column(String(100))
    last_name = Column(String(100))
    profile_image_url = Column(String(500))

    is_premium = Column(Boolean, default=False, nullable=False)
    stripe_subscription_id = Column(String(255))
    is_admin = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    @property
    def display_name(self) -> str:
        name = " ".join(part for part in (self.first_name, self.last_name) if part)
        return name or (self.email or "Anonymous")
