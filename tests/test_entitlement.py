"""Unit tests for the premium content entitlement rules."""

from app.config import PREMIUM_ACCESS_AUTHENTICATED, PREMIUM_ACCESS_SUBSCRIBER
from app.models.blog import BlogPost
from app.models.user import User
from app.schemas import BlogPostFull, BlogPostTeaser
from app.services.entitlement import can_read, can_read_premium, premium_required, present_post, present_posts


def _post(**overrides) -> BlogPost:
    fields = {
        "id": "post-1",
        "title": "Intro",
        "slug": "intro",
        "excerpt": "teaser",
        "content": "SECRET",
        "category": "MEL",
        "tags": ["mel"],
        "is_premium": True,
        "is_published": True,
        "read_time_minutes": 5,
    }
    fields.update(overrides)
    return BlogPost(**fields)


def _user(is_premium=False) -> User:
    return User(id="user-1", provider_sub="sub-1", is_premium=is_premium, is_admin=False)


def test_free_post_is_full_for_everyone():
    post = _post(is_premium=False)

    for viewer in (None, _user(), _user(is_premium=True)):
        view = present_post(post, viewer)
        assert isinstance(view, BlogPostFull)
        assert view.content == "SECRET"


def test_premium_post_is_teaser_for_anonymous():
    view = present_post(_post(), None)

    assert isinstance(view, BlogPostTeaser)
    dumped = view.model_dump()
    assert "content" not in dumped
    assert dumped["excerpt"] == "teaser"
    assert dumped["access"] == "teaser"


def test_premium_post_is_full_for_any_signed_in_user_by_default():
    view = present_post(_post(), _user(is_premium=False), PREMIUM_ACCESS_AUTHENTICATED)

    assert isinstance(view, BlogPostFull)
    assert view.access == "full"


def test_subscriber_mode_requires_premium_flag():
    post = _post()

    assert not can_read(post, _user(is_premium=False), PREMIUM_ACCESS_SUBSCRIBER)
    assert can_read(post, _user(is_premium=True), PREMIUM_ACCESS_SUBSCRIBER)
    assert isinstance(present_post(post, _user(), PREMIUM_ACCESS_SUBSCRIBER), BlogPostTeaser)


def test_anonymous_never_reads_premium():
    assert not can_read_premium(None, PREMIUM_ACCESS_AUTHENTICATED)
    assert not can_read_premium(None, PREMIUM_ACCESS_SUBSCRIBER)


def test_present_posts_mixes_variants():
    posts = [_post(id="a", slug="a", is_premium=False), _post(id="b", slug="b")]

    views = present_posts(posts, None)

    assert [v.access for v in views] == ["full", "teaser"]


def test_premium_required_has_metadata_but_no_content():
    body = premium_required(_post()).model_dump()

    assert "content" not in body
    assert body["is_premium"] is True
    assert body["excerpt"] == "teaser"
    assert body["message"] == "Premium subscription required to access this content"


def test_presenting_does_not_modify_the_post():
    post = _post()

    present_post(post, None)

    assert post.content == "SECRET"
