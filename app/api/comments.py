import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, ConfigDict
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_current_user, get_optional_user
from app.models.user import User
from app.schemas import CommentAuthor
from app.services import engagement

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/blog", tags=["comments"])


class CommentCreate(BaseModel):
    content: str
    parent_id: Optional[str] = None


class CommentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    post_id: str
    user_id: str
    parent_id: Optional[str] = None
    content: str
    created_at: datetime
    updated_at: Optional[datetime] = None
    author: CommentAuthor


class CommentDeleted(BaseModel):
    success: bool
    deleted: int


@router.get("/{post_id}/comments", response_model=List[CommentResponse])
def get_post_comments(
    post_id: str,
    user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db)
):
    """Get all comments for a blog post, newest first"""
    engagement.get_visible_post_or_404(db, post_id, user)
    return engagement.list_comments(db, post_id)


@router.post("/{post_id}/comments", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
def create_comment(
    post_id: str,
    comment: CommentCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Comment on a post, or reply to a comment on the same post.
    🔒 SECURITY: Author comes from the verified token, never from the request body.
    """
    engagement.get_visible_post_or_404(db, post_id, user)

    try:
        return engagement.post_comment(db, post_id, user.id, comment.content, comment.parent_id)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Error creating comment on post %s", post_id)
        raise HTTPException(status_code=500, detail="Failed to post comment")


@router.delete("/comments/{comment_id}", response_model=CommentDeleted)
def delete_comment(
    comment_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Delete your own comment. Replies to it are deleted with it."""
    try:
        deleted = engagement.delete_comment(db, comment_id, user.id)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Error deleting comment %s", comment_id)
        raise HTTPException(status_code=500, detail="Failed to delete comment")

    return {"success": True, "deleted": deleted}
