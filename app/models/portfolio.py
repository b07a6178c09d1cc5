import uuid

from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, String, Text

from app.database import Base, utcnow

PROJECT_CATEGORIES = ("MEL Systems", "ICT Infrastructure", "Web Development", "Data Analytics")


class PortfolioProject(Base):
    __tablename__ = "portfolio_projects"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=False, unique=True, index=True)
    description = Column(Text, nullable=False)
    challenge = Column(Text)
    solution = Column(Text)
    outcome = Column(Text)
    category = Column(String(100), nullable=False, index=True)
    tech_stack = Column(JSON, default=list)
    featured_image = Column(String(500))
    images = Column(JSON, default=list)
    live_url = Column(String(500))
    github_url = Column(String(500))
    featured = Column(Boolean, default=False, nullable=False, index=True)
    # Display position within the showcase
    order = Column("order", Integer, default=0)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
