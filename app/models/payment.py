import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String

from app.database import Base, utcnow


class Payment(Base):
    """One row per settled payment; the unique Stripe ids make webhook replays no-ops."""

    __tablename__ = "payments"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    stripe_event_id = Column(String(255), unique=True, nullable=False)
    stripe_payment_intent_id = Column(String(255), unique=True, nullable=False)
    amount_cents = Column(Integer, nullable=False)
    currency = Column(String(10), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)
