"""Shared test fixtures: in-memory database, fake identity provider, test settings."""

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.config import PREMIUM_ACCESS_AUTHENTICATED, Settings, get_settings
from app.database import get_db, init_db
from app.dependencies import get_identity_verifier
from app.main import app
from app.models.blog import BlogPost

ADMIN_EMAIL = "admin@example.com"
WEBHOOK_SECRET = "whsec_test_secret"


class FakeIdentityVerifier:
    """Stands in for Google: bearer tokens map to fixed claims."""

    def __init__(self):
        self.tokens = {}

    def register(self, token: str, sub: str, email: str, **claims) -> dict:
        self.tokens[token] = {"sub": sub, "email": email, **claims}
        return {"Authorization": f"Bearer {token}"}

    def verify(self, token: str) -> dict:
        if token not in self.tokens:
            raise ValueError("Token expired")
        return dict(self.tokens[token])


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory) -> Generator[Session, None, None]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def settings() -> Settings:
    settings = Settings()
    settings.google_client_id = "test-client-id"
    settings.admin_emails = {ADMIN_EMAIL}
    settings.premium_access = PREMIUM_ACCESS_AUTHENTICATED
    settings.stripe_secret_key = "sk_test_123"
    settings.stripe_publishable_key = "pk_test_123"
    settings.stripe_webhook_secret = WEBHOOK_SECRET
    return settings


@pytest.fixture
def verifier() -> FakeIdentityVerifier:
    return FakeIdentityVerifier()


@pytest.fixture
def client(session_factory, settings, verifier) -> Generator[TestClient, None, None]:
    """Test client with db, identity and settings overridden."""

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_identity_verifier] = lambda: verifier

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture
def user_headers(verifier) -> dict:
    return verifier.register(
        "reader-token", sub="sub-reader", email="reader@example.com",
        given_name="Rita", family_name="Reader",
    )


@pytest.fixture
def other_headers(verifier) -> dict:
    return verifier.register("other-token", sub="sub-other", email="other@example.com", given_name="Otto")


@pytest.fixture
def admin_headers(verifier) -> dict:
    return verifier.register("admin-token", sub="sub-admin", email=ADMIN_EMAIL, given_name="Ada")


@pytest.fixture
def make_post(db):
    """Insert a blog post directly, bypassing the API."""

    def _make_post(**overrides) -> BlogPost:
        fields = {
            "title": "A post",
            "slug": "a-post",
            "excerpt": "teaser",
            "content": "full body",
            "category": "Programming",
            "tags": [],
            "is_premium": False,
            "is_published": True,
        }
        fields.update(overrides)
        post = BlogPost(**fields)
        db.add(post)
        db.commit()
        db.refresh(post)
        return post

    return _make_post
