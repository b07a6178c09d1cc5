import logging
from datetime import datetime
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import require_admin
from app.models.contact import ContactRequest
from app.models.user import User

logger = logging.getLogger(__name__)

router = APIRouter(tags=["contact"])

ProjectType = Literal["Consultation", "Development", "MEL Implementation", "Training"]
ContactMethod = Literal["Email", "Phone", "WhatsApp"]


class ContactCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    project_type: Optional[ProjectType] = None
    preferred_contact: Optional[ContactMethod] = None
    message: str = Field(min_length=1, max_length=5000)


class ContactResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: str
    project_type: Optional[str] = None
    preferred_contact: Optional[str] = None
    message: str
    is_read: bool
    created_at: Optional[datetime] = None


class ContactStatusUpdate(BaseModel):
    is_read: bool


@router.post("/api/contact", response_model=ContactResponse, status_code=status.HTTP_201_CREATED)
def create_contact_request(data: ContactCreate, db: Session = Depends(get_db)):
    request = ContactRequest(
        name=data.name.strip(),
        email=data.email,
        project_type=data.project_type,
        preferred_contact=data.preferred_contact,
        message=data.message.strip(),
        is_read=False
    )
    db.add(request)
    db.commit()
    db.refresh(request)

    logger.info("Contact request %s received", request.id)
    return request


@router.get("/api/admin/contacts", response_model=List[ContactResponse])
def list_contact_requests(
    unread_only: bool = False,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    query = db.query(ContactRequest)
    if unread_only:
        query = query.filter(ContactRequest.is_read.is_(False))
    return query.order_by(ContactRequest.created_at.desc()).all()


@router.patch("/api/admin/contacts/{request_id}", response_model=ContactResponse)
def update_contact_status(
    request_id: str,
    data: ContactStatusUpdate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    request = db.query(ContactRequest).filter(ContactRequest.id == request_id).first()
    if not request:
        raise HTTPException(status_code=404, detail="Contact request not found")

    request.is_read = data.is_read
    db.commit()
    db.refresh(request)
    return request
