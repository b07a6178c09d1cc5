import uuid

from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, String, Text

from app.database import Base, utcnow

BLOG_CATEGORIES = ("MEL", "Programming", "Career", "Networking")


class BlogPost(Base):
    __tablename__ = "blog_posts"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title = Column(String(255), nullable=False, index=True)
    slug = Column(String(255), nullable=False, unique=True, index=True)
    excerpt = Column(Text, nullable=False)
    content = Column(Text, nullable=False)
    featured_image = Column(String(500))
    category = Column(String(50), nullable=False, index=True)
    tags = Column(JSON, default=list)
    is_premium = Column(Boolean, default=False, nullable=False, index=True)
    is_published = Column(Boolean, default=True, nullable=False, index=True)
    read_time_minutes = Column(Integer, default=5)
    published_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
