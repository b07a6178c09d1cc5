from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.newsletter import SubscriberResponse
from app.database import get_db
from app.dependencies import require_admin
from app.models.blog import BlogPost
from app.models.contact import ContactRequest
from app.models.newsletter import NewsletterSubscriber
from app.models.user import User

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.get("/stats")
def get_stats(admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    """Dashboard counters"""
    return {
        "total_posts": db.query(BlogPost).count(),
        "published_posts": db.query(BlogPost).filter(BlogPost.is_published.is_(True)).count(),
        "total_subscribers": db.query(NewsletterSubscriber).filter(NewsletterSubscriber.is_active.is_(True)).count(),
        "total_contacts": db.query(ContactRequest).count(),
        "unread_contacts": db.query(ContactRequest).filter(ContactRequest.is_read.is_(False)).count(),
        "premium_users": db.query(User).filter(User.is_premium.is_(True)).count(),
    }


@router.get("/subscribers", response_model=List[SubscriberResponse])
def list_subscribers(admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    return db.query(NewsletterSubscriber).order_by(NewsletterSubscriber.subscribed_at.desc()).all()
