from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_current_user
from app.models.user import User
from app.schemas import UserResponse

router = APIRouter()


class ProfileRequest(BaseModel):
    # is_premium and is_admin are not client-writable
    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    profile_image_url: Optional[str] = Field(default=None, max_length=500)


@router.get("/auth/user", response_model=UserResponse)
def get_auth_user(user: User = Depends(get_current_user)):
    """The signed-in user. Called by the client right after login."""
    return user


@router.get("/user/profile", response_model=UserResponse)
def get_profile(user: User = Depends(get_current_user)):
    return user


@router.put("/user/profile", response_model=UserResponse)
def save_profile(data: ProfileRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """
    Update the caller's display fields. User comes from the verified token.
    """
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(user, field, value)

    db.commit()
    db.refresh(user)
    return user
