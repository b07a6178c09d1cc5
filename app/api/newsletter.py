import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.database import get_db, utcnow
from app.models.newsletter import NewsletterSubscriber

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/newsletter", tags=["newsletter"])


class SubscribeRequest(BaseModel):
    email: EmailStr
    name: Optional[str] = Field(default=None, max_length=255)


class UnsubscribeRequest(BaseModel):
    email: EmailStr


class SubscriberResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    name: Optional[str] = None
    is_active: bool
    subscribed_at: Optional[datetime] = None
    unsubscribed_at: Optional[datetime] = None


class SubscribeResult(BaseModel):
    message: str
    subscriber: SubscriberResponse


def _find(db: Session, email: str) -> Optional[NewsletterSubscriber]:
    return db.query(NewsletterSubscriber).filter(NewsletterSubscriber.email == email).first()


@router.post("/subscribe", response_model=SubscribeResult, status_code=201)
def subscribe(data: SubscribeRequest, db: Session = Depends(get_db)):
    """
    Subscribe an email. One row per email: a lapsed subscriber is reactivated,
    an active one is told they're already subscribed.
    """
    email = data.email.lower()
    existing = _find(db, email)

    if existing:
        if existing.is_active:
            raise HTTPException(status_code=400, detail="Already subscribed")

        existing.is_active = True
        existing.unsubscribed_at = None
        existing.subscribed_at = utcnow()
        if data.name:
            existing.name = data.name
        db.commit()
        db.refresh(existing)

        logger.info("Newsletter subscriber %s reactivated", existing.id)
        return JSONResponse(
            status_code=200,
            content=SubscribeResult(
                message="Resubscribed successfully",
                subscriber=SubscriberResponse.model_validate(existing)
            ).model_dump(mode="json")
        )

    subscriber = NewsletterSubscriber(email=email, name=data.name, is_active=True)
    db.add(subscriber)
    try:
        db.commit()
    except IntegrityError:
        # Another request subscribed the same email first
        db.rollback()
        raise HTTPException(status_code=400, detail="Already subscribed")
    db.refresh(subscriber)

    return {"message": "Subscribed successfully", "subscriber": subscriber}


@router.post("/unsubscribe")
def unsubscribe(data: UnsubscribeRequest, db: Session = Depends(get_db)):
    subscriber = _find(db, data.email.lower())
    if not subscriber:
        raise HTTPException(status_code=404, detail="Subscriber not found")

    if subscriber.is_active:
        subscriber.is_active = False
        subscriber.unsubscribed_at = utcnow()
        db.commit()

    return {"message": "Unsubscribed successfully"}
