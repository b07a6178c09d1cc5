"""
Premium content entitlement.

Decides how much of a blog post a caller may see. Pure functions only: no
database access, no request state. Publication filtering happens before these
are called.
"""

from typing import Iterable, List, Optional

from app.config import PREMIUM_ACCESS_AUTHENTICATED, PREMIUM_ACCESS_SUBSCRIBER
from app.models.blog import BlogPost
from app.models.user import User
from app.schemas import BlogPostFull, BlogPostTeaser, BlogPostView, PremiumRequired


def can_read_premium(viewer: Optional[User], mode: str = PREMIUM_ACCESS_AUTHENTICATED) -> bool:
    """
    Whether ``viewer`` may read premium content.

    ``authenticated``: any signed-in user.
    ``subscriber``: only users whose ``is_premium`` flag is set.
    """
    if viewer is None:
        return False
    if mode == PREMIUM_ACCESS_SUBSCRIBER:
        return bool(viewer.is_premium)
    return True


def can_read(post: BlogPost, viewer: Optional[User], mode: str = PREMIUM_ACCESS_AUTHENTICATED) -> bool:
    if not post.is_premium:
        return True
    return can_read_premium(viewer, mode)


def teaser_for(post: BlogPost) -> BlogPostTeaser:
    return BlogPostTeaser.model_validate(post)


def present_post(post: BlogPost, viewer: Optional[User], mode: str = PREMIUM_ACCESS_AUTHENTICATED) -> BlogPostView:
    """Full post if the viewer is entitled to it, otherwise the content-free teaser."""
    if can_read(post, viewer, mode):
        return BlogPostFull.model_validate(post)
    return teaser_for(post)


def present_posts(posts: Iterable[BlogPost], viewer: Optional[User], mode: str = PREMIUM_ACCESS_AUTHENTICATED) -> List[BlogPostView]:
    return [present_post(post, viewer, mode) for post in posts]


def premium_required(post: BlogPost) -> PremiumRequired:
    """Denial body for a direct fetch: teaser metadata plus a message, never content."""
    return PremiumRequired.model_validate(post)
