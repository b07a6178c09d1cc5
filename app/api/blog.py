import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import Settings, get_settings
from app.database import get_db, utcnow
from app.dependencies import get_current_user, get_optional_user, require_admin
from app.models.blog import BlogPost
from app.models.user import User
from app.schemas import BlogPostFull, BlogPostView, MessageResponse, PremiumRequired
from app.services import engagement
from app.services.entitlement import can_read, premium_required, present_post, present_posts

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/blog", tags=["blog"])

# Taken by fixed routes under /api/blog
RESERVED_SLUGS = frozenset({"recent", "categories"})


def _check_slug(slug: Optional[str]) -> Optional[str]:
    if slug in RESERVED_SLUGS:
        raise ValueError(f"'{slug}' is a reserved slug")
    return slug


class BlogPostCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    slug: str = Field(min_length=1, max_length=255, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
    excerpt: str = Field(min_length=1)
    content: str = Field(min_length=1)
    featured_image: Optional[str] = None
    category: str = Field(min_length=1, max_length=50)
    tags: List[str] = Field(default_factory=list)
    is_premium: bool = False
    is_published: bool = True
    read_time_minutes: int = Field(default=5, ge=1)

    @field_validator("slug")
    @classmethod
    def _slug_not_reserved(cls, value):
        return _check_slug(value)


class BlogPostUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    slug: Optional[str] = Field(default=None, min_length=1, max_length=255, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
    excerpt: Optional[str] = Field(default=None, min_length=1)
    content: Optional[str] = Field(default=None, min_length=1)
    featured_image: Optional[str] = None
    category: Optional[str] = Field(default=None, min_length=1, max_length=50)
    tags: Optional[List[str]] = None
    is_premium: Optional[bool] = None
    is_published: Optional[bool] = None
    read_time_minutes: Optional[int] = Field(default=None, ge=1)

    @field_validator("slug")
    @classmethod
    def _slug_not_reserved(cls, value):
        return _check_slug(value)


class LikeStatus(BaseModel):
    count: int
    is_liked: bool


def _published(db: Session):
    return db.query(BlogPost).filter(BlogPost.is_published.is_(True))


def _matches_search(post: BlogPost, needle: str) -> bool:
    if needle in post.title.lower() or needle in (post.excerpt or "").lower():
        return True
    return any(needle in tag.lower() for tag in (post.tags or []))


def _slug_taken(db: Session, slug: str, exclude_id: Optional[str] = None) -> bool:
    query = db.query(BlogPost.id).filter(BlogPost.slug == slug)
    if exclude_id:
        query = query.filter(BlogPost.id != exclude_id)
    return query.first() is not None


@router.get("", response_model=List[BlogPostView])
def list_blog_posts(
    category: Optional[str] = None,
    search: Optional[str] = None,
    premium: Optional[bool] = None,
    user: Optional[User] = Depends(get_optional_user),
    settings: Settings = Depends(get_settings),
    db: Session = Depends(get_db)
):
    """Published posts, newest first. Premium content is stripped for callers not entitled to it."""
    query = _published(db)

    if category:
        query = query.filter(BlogPost.category == category)
    if premium is not None:
        query = query.filter(BlogPost.is_premium.is_(premium))

    posts = query.order_by(BlogPost.published_at.desc()).all()

    # Tags live in a JSON column, so search is applied in Python
    if search:
        needle = search.lower()
        posts = [post for post in posts if _matches_search(post, needle)]

    return present_posts(posts, user, settings.premium_access)


@router.get("/recent", response_model=List[BlogPostView])
def get_recent_posts(
    limit: int = Query(default=6, ge=1, le=50),
    user: Optional[User] = Depends(get_optional_user),
    settings: Settings = Depends(get_settings),
    db: Session = Depends(get_db)
):
    posts = _published(db).order_by(BlogPost.published_at.desc()).limit(limit).all()
    return present_posts(posts, user, settings.premium_access)


@router.get("/categories")
def get_categories(db: Session = Depends(get_db)):
    """Get all unique categories"""
    categories = db.query(BlogPost.category).filter(
        BlogPost.is_published.is_(True)
    ).distinct().order_by(BlogPost.category).all()

    return {"categories": [cat[0] for cat in categories if cat[0]]}


@router.get(
    "/{slug}",
    response_model=BlogPostView,
    responses={403: {"model": PremiumRequired}, 404: {"model": MessageResponse}}
)
def get_blog_post(
    slug: str,
    user: Optional[User] = Depends(get_optional_user),
    settings: Settings = Depends(get_settings),
    db: Session = Depends(get_db)
):
    """
    Get a single post by slug.
    🔒 Premium posts answer 403 with teaser metadata (never the content) when the caller isn't entitled.
    """
    post = db.query(BlogPost).filter(BlogPost.slug == slug).first()

    # Drafts are only visible to admins
    if not post or (not post.is_published and not (user and user.is_admin)):
        raise HTTPException(status_code=404, detail="Blog post not found")

    if not can_read(post, user, settings.premium_access):
        return JSONResponse(
            status_code=status.HTTP_403_FORBIDDEN,
            content=jsonable_encoder(premium_required(post))
        )

    return present_post(post, user, settings.premium_access)


@router.post("", response_model=BlogPostFull, status_code=status.HTTP_201_CREATED)
def create_blog_post(
    post: BlogPostCreate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Create a new blog post (admins only)"""
    if _slug_taken(db, post.slug):
        raise HTTPException(status_code=409, detail="A post with this slug already exists")

    new_post = BlogPost(**post.model_dump())
    db.add(new_post)
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Error creating blog post %s", post.slug)
        raise HTTPException(status_code=500, detail="Failed to create blog post")
    db.refresh(new_post)

    logger.info("Blog post %s created by %s", new_post.slug, admin.id)
    return BlogPostFull.model_validate(new_post)


@router.put("/{post_id}", response_model=BlogPostFull)
def update_blog_post(
    post_id: str,
    data: BlogPostUpdate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Partially update a blog post (admins only)"""
    post = engagement.get_post_or_404(db, post_id)
    changes = {
        field: value for field, value in data.model_dump(exclude_unset=True).items()
        if value is not None or field == "featured_image"
    }

    if "slug" in changes and changes["slug"] != post.slug:
        # Published slugs are linked from outside, they never change
        if post.is_published:
            raise HTTPException(status_code=400, detail="The slug of a published post cannot be changed")
        if _slug_taken(db, changes["slug"], exclude_id=post.id):
            raise HTTPException(status_code=409, detail="A post with this slug already exists")

    if changes.get("is_published") and not post.is_published:
        changes["published_at"] = utcnow()

    for field, value in changes.items():
        setattr(post, field, value)

    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Error updating blog post %s", post_id)
        raise HTTPException(status_code=500, detail="Failed to update blog post")
    db.refresh(post)

    return BlogPostFull.model_validate(post)


@router.delete("/{post_id}", response_model=MessageResponse)
def delete_blog_post(
    post_id: str,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Delete a blog post along with its likes and comments (admins only)"""
    post = engagement.get_post_or_404(db, post_id)

    try:
        engagement.delete_post_engagement(db, post.id)
        db.delete(post)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Error deleting blog post %s", post_id)
        raise HTTPException(status_code=500, detail="Failed to delete blog post")

    logger.info("Blog post %s deleted by %s", post_id, admin.id)
    return {"message": "Blog post deleted"}


# --- Like Endpoints ---

@router.get("/{post_id}/likes", response_model=LikeStatus)
def get_post_likes(
    post_id: str,
    user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db)
):
    """Like count for a post, and whether the caller (if signed in) likes it"""
    engagement.get_visible_post_or_404(db, post_id, user)

    is_liked = False
    if user:
        is_liked = engagement.get_user_like(db, post_id, user.id) is not None

    return {"count": engagement.get_like_count(db, post_id), "is_liked": is_liked}


@router.post("/{post_id}/likes/toggle", response_model=LikeStatus)
def toggle_like_post(
    post_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Toggle like status for a blog post"""
    engagement.get_visible_post_or_404(db, post_id, user)

    try:
        liked, total_likes = engagement.toggle_like(db, post_id, user.id)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Error toggling like on post %s", post_id)
        raise HTTPException(status_code=500, detail="Failed to toggle like")

    return {"count": total_likes, "is_liked": liked}
