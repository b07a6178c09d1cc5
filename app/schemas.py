"""
Response shapes shared across routers.

Blog posts leave the API as one of two explicit variants: ``BlogPostFull``
(everything, including ``content``) or ``BlogPostTeaser`` (no ``content``
field at all). The ``access`` tag tells clients which one they received.
"""

from datetime import datetime
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_image_url: Optional[str] = None
    is_premium: bool
    is_admin: bool
    created_at: Optional[datetime] = None


class CommentAuthor(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_image_url: Optional[str] = None


class BlogPostTeaser(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    access: Literal["teaser"] = "teaser"
    id: str
    title: str
    slug: str
    excerpt: str
    featured_image: Optional[str] = None
    category: str
    tags: List[str] = Field(default_factory=list)
    is_premium: bool
    is_published: bool
    read_time_minutes: Optional[int] = None
    published_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("tags", mode="before")
    @classmethod
    def _tags_default(cls, value):
        return value or []


class BlogPostFull(BlogPostTeaser):
    access: Literal["full"] = "full"
    content: str


BlogPostView = Annotated[Union[BlogPostFull, BlogPostTeaser], Field(discriminator="access")]


class PremiumRequired(BlogPostTeaser):
    """Body of the 403 returned for a direct fetch of a premium post."""

    message: str = "Premium subscription required to access this content"


class MessageResponse(BaseModel):
    message: str
