import uuid

from sqlalchemy import Column, DateTime, ForeignKey, String, UniqueConstraint

from app.database import Base, utcnow


class BlogLike(Base):
    __tablename__ = "blog_likes"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    post_id = Column(String(36), ForeignKey("blog_posts.id"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    # Ensure each user can only like a post once
    __table_args__ = (UniqueConstraint("post_id", "user_id", name="uq_post_user_like"),)
