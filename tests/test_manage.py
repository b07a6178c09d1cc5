"""Management helper: seeding and admin grants."""

import pytest

import manage
from app.models.blog import BlogPost
from app.models.portfolio import PortfolioProject
from app.models.user import User


@pytest.fixture(autouse=True)
def use_test_database(monkeypatch, engine, session_factory):
    monkeypatch.setattr(manage, "SessionLocal", session_factory)
    monkeypatch.setattr(manage, "init_db", lambda: None)


def test_seed_is_repeatable(db):
    manage.seed()
    manage.seed()

    assert db.query(BlogPost).count() == len(manage.SAMPLE_POSTS)
    assert db.query(PortfolioProject).count() == len(manage.SAMPLE_PROJECTS)


def test_grant_and_revoke_admin(db):
    db.add(User(provider_sub="sub-1", email="Owner@Example.com"))
    db.commit()

    assert manage.set_admin("owner@example.com", True) is True
    db.expire_all()
    assert db.query(User).one().is_admin is True

    assert manage.set_admin("OWNER@example.com", False) is True
    db.expire_all()
    assert db.query(User).one().is_admin is False


def test_grant_admin_unknown_email(db):
    assert manage.set_admin("nobody@example.com", True) is False
