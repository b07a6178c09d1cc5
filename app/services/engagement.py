import logging
from typing import List, Optional, Tuple

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models.blog import BlogPost
from app.models.comment import BlogComment
from app.models.like import BlogLike
from app.models.user import User

logger = logging.getLogger(__name__)

CHAR_LIMIT_COMMENT = 5000


def get_post_or_404(db: Session, post_id: str) -> BlogPost:
    post = db.query(BlogPost).filter(BlogPost.id == post_id).first()
    if not post:
        raise HTTPException(status_code=404, detail="Blog post not found")
    return post


def get_visible_post_or_404(db: Session, post_id: str, viewer: Optional[User] = None) -> BlogPost:
    """Like get_post_or_404, but drafts only exist for admins."""
    post = get_post_or_404(db, post_id)
    if not post.is_published and not (viewer and viewer.is_admin):
        raise HTTPException(status_code=404, detail="Blog post not found")
    return post


# --- Likes ---

def get_like_count(db: Session, post_id: str) -> int:
    return db.query(BlogLike).filter(BlogLike.post_id == post_id).count()


def get_user_like(db: Session, post_id: str, user_id: str) -> Optional[BlogLike]:
    return db.query(BlogLike).filter(
        BlogLike.post_id == post_id,
        BlogLike.user_id == user_id
    ).first()


def toggle_like(db: Session, post_id: str, user_id: str) -> Tuple[bool, int]:
    """
    Like the post if the user hasn't, unlike it if they have.
    Returns (liked, total_likes) after the toggle.

    The (post_id, user_id) unique constraint is what guarantees one like per
    user: if a concurrent toggle inserts first, our insert fails and the
    pair is simply reported as liked.
    """
    if get_user_like(db, post_id, user_id):
        # Delete by filter, a concurrent unlike may already have removed the row
        db.query(BlogLike).filter(
            BlogLike.post_id == post_id,
            BlogLike.user_id == user_id
        ).delete(synchronize_session=False)
        db.commit()
        liked = False
    else:
        db.add(BlogLike(post_id=post_id, user_id=user_id))
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            logger.info("Duplicate like for post %s by user %s ignored", post_id, user_id)
        liked = True

    return liked, get_like_count(db, post_id)


# --- Comments ---

def list_comments(db: Session, post_id: str) -> List[BlogComment]:
    """All comments on a post, newest first, with their authors loaded."""
    return db.query(BlogComment).filter(
        BlogComment.post_id == post_id
    ).order_by(BlogComment.created_at.desc()).all()


def post_comment(
    db: Session,
    post_id: str,
    user_id: str,
    content: str,
    parent_id: Optional[str] = None
) -> BlogComment:
    content = (content or "").strip()
    if not content:
        raise HTTPException(status_code=400, detail="Comment content is required")
    if len(content) > CHAR_LIMIT_COMMENT:
        raise HTTPException(
            status_code=400,
            detail=f"Comment is too long (max {CHAR_LIMIT_COMMENT} characters)"
        )

    if parent_id:
        parent = db.query(BlogComment).filter(BlogComment.id == parent_id).first()
        if not parent or parent.post_id != post_id:
            raise HTTPException(status_code=400, detail="Parent comment not found on this post")

    comment = BlogComment(
        post_id=post_id,
        user_id=user_id,
        parent_id=parent_id or None,
        content=content
    )
    db.add(comment)
    db.commit()
    db.refresh(comment)
    return comment


def _descendant_ids(db: Session, comment_id: str) -> List[str]:
    """Ids of every reply below ``comment_id``, at any depth."""
    found = []
    frontier = [comment_id]
    while frontier:
        children = [
            row.id for row in db.query(BlogComment.id).filter(BlogComment.parent_id.in_(frontier)).all()
        ]
        found.extend(children)
        frontier = children
    return found


def delete_comment(db: Session, comment_id: str, user_id: str) -> int:
    """
    Delete a comment owned by ``user_id`` together with its replies.
    Returns the number of comments removed.
    """
    comment = db.query(BlogComment).filter(BlogComment.id == comment_id).first()
    if not comment:
        raise HTTPException(status_code=404, detail="Comment not found")

    if comment.user_id != user_id:
        raise HTTPException(status_code=403, detail="You can only delete your own comments")

    ids = [comment_id] + _descendant_ids(db, comment_id)
    db.query(BlogComment).filter(BlogComment.id.in_(ids)).delete(synchronize_session=False)
    db.commit()

    return len(ids)


def delete_post_engagement(db: Session, post_id: str):
    """Remove likes and comments of a post that is about to be deleted. Caller commits."""
    db.query(BlogLike).filter(BlogLike.post_id == post_id).delete(synchronize_session=False)
    db.query(BlogComment).filter(BlogComment.post_id == post_id).delete(synchronize_session=False)
