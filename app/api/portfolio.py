import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import require_admin
from app.models.portfolio import PortfolioProject
from app.models.user import User
from app.schemas import MessageResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/portfolio", tags=["portfolio"])

# Taken by fixed routes under /api/portfolio
RESERVED_SLUGS = frozenset({"featured"})


def _check_slug(slug: Optional[str]) -> Optional[str]:
    if slug in RESERVED_SLUGS:
        raise ValueError(f"'{slug}' is a reserved slug")
    return slug


class ProjectCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    slug: str = Field(min_length=1, max_length=255, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
    description: str = Field(min_length=1)
    challenge: Optional[str] = None
    solution: Optional[str] = None
    outcome: Optional[str] = None
    category: str = Field(min_length=1, max_length=100)
    tech_stack: List[str] = Field(default_factory=list)
    featured_image: Optional[str] = None
    images: List[str] = Field(default_factory=list)
    live_url: Optional[str] = None
    github_url: Optional[str] = None
    featured: bool = False
    order: int = 0

    @field_validator("slug")
    @classmethod
    def _slug_not_reserved(cls, value):
        return _check_slug(value)


class ProjectUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    slug: Optional[str] = Field(default=None, min_length=1, max_length=255, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
    description: Optional[str] = Field(default=None, min_length=1)
    challenge: Optional[str] = None
    solution: Optional[str] = None
    outcome: Optional[str] = None
    category: Optional[str] = Field(default=None, min_length=1, max_length=100)
    tech_stack: Optional[List[str]] = None
    featured_image: Optional[str] = None
    images: Optional[List[str]] = None
    live_url: Optional[str] = None
    github_url: Optional[str] = None
    featured: Optional[bool] = None
    order: Optional[int] = None

    @field_validator("slug")
    @classmethod
    def _slug_not_reserved(cls, value):
        return _check_slug(value)


class ProjectResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    slug: str
    description: str
    challenge: Optional[str] = None
    solution: Optional[str] = None
    outcome: Optional[str] = None
    category: str
    tech_stack: List[str] = Field(default_factory=list)
    featured_image: Optional[str] = None
    images: List[str] = Field(default_factory=list)
    live_url: Optional[str] = None
    github_url: Optional[str] = None
    featured: bool
    order: Optional[int] = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("tech_stack", "images", mode="before")
    @classmethod
    def _list_default(cls, value):
        return value or []


# Fields that must never be written as NULL by a partial update
_REQUIRED_FIELDS = {"title", "slug", "description", "category", "tech_stack", "images", "featured", "order"}


def _get_project_or_404(db: Session, project_id: str) -> PortfolioProject:
    project = db.query(PortfolioProject).filter(PortfolioProject.id == project_id).first()
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    return project


def _slug_taken(db: Session, slug: str, exclude_id: Optional[str] = None) -> bool:
    query = db.query(PortfolioProject.id).filter(PortfolioProject.slug == slug)
    if exclude_id:
        query = query.filter(PortfolioProject.id != exclude_id)
    return query.first() is not None


def _showcase_order(query):
    return query.order_by(
        PortfolioProject.featured.desc(),
        PortfolioProject.order.asc(),
        PortfolioProject.created_at.desc()
    )


@router.get("", response_model=List[ProjectResponse])
def list_projects(
    category: Optional[str] = None,
    search: Optional[str] = None,
    featured: Optional[bool] = None,
    db: Session = Depends(get_db)
):
    """All projects, featured first. Portfolio content is always public."""
    query = db.query(PortfolioProject)

    if category:
        query = query.filter(PortfolioProject.category == category)
    if featured is not None:
        query = query.filter(PortfolioProject.featured.is_(featured))

    projects = _showcase_order(query).all()

    if search:
        needle = search.lower()
        projects = [
            p for p in projects
            if needle in p.title.lower()
            or needle in p.description.lower()
            or any(needle in tech.lower() for tech in (p.tech_stack or []))
        ]

    return projects


@router.get("/featured", response_model=List[ProjectResponse])
def get_featured_projects(db: Session = Depends(get_db)):
    query = db.query(PortfolioProject).filter(PortfolioProject.featured.is_(True))
    return _showcase_order(query).all()


@router.get("/{slug}", response_model=ProjectResponse, responses={404: {"model": MessageResponse}})
def get_project(slug: str, db: Session = Depends(get_db)):
    project = db.query(PortfolioProject).filter(PortfolioProject.slug == slug).first()
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    return project


@router.post("", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
def create_project(
    data: ProjectCreate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    if _slug_taken(db, data.slug):
        raise HTTPException(status_code=409, detail="A project with this slug already exists")

    project = PortfolioProject(**data.model_dump())
    db.add(project)
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Error creating project %s", data.slug)
        raise HTTPException(status_code=500, detail="Failed to create project")
    db.refresh(project)

    return project


@router.put("/{project_id}", response_model=ProjectResponse)
def update_project(
    project_id: str,
    data: ProjectUpdate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    project = _get_project_or_404(db, project_id)
    changes = {
        field: value for field, value in data.model_dump(exclude_unset=True).items()
        if value is not None or field not in _REQUIRED_FIELDS
    }

    if "slug" in changes and _slug_taken(db, changes["slug"], exclude_id=project.id):
        raise HTTPException(status_code=409, detail="A project with this slug already exists")

    for field, value in changes.items():
        setattr(project, field, value)

    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Error updating project %s", project_id)
        raise HTTPException(status_code=500, detail="Failed to update project")
    db.refresh(project)

    return project


@router.delete("/{project_id}", response_model=MessageResponse)
def delete_project(
    project_id: str,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    project = _get_project_or_404(db, project_id)

    try:
        db.delete(project)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Error deleting project %s", project_id)
        raise HTTPException(status_code=500, detail="Failed to delete project")

    return {"message": "Project deleted"}
