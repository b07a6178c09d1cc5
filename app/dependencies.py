# app/dependencies.py
import logging
from typing import Optional

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.config import Settings, get_settings
from app.database import get_db
from app.models.user import User

logger = logging.getLogger(__name__)

# Security scheme, auto_error off so anonymous requests reach optional routes
bearer = HTTPBearer(description="OpenID Connect ID Token (JWT)", auto_error=False)


class IdentityConfigurationError(Exception):
    pass


class GoogleIdentityVerifier:
    """
    Verifies Google-issued OpenID Connect ID tokens.

    Created once at startup (see ``app.main.lifespan``) and shared by every
    request; the HTTP transport used to fetch Google's signing certs is reused.
    """

    def __init__(self, client_id: Optional[str]):
        self.client_id = client_id
        self._transport = google_requests.Request()

    def verify(self, token: str) -> dict:
        """Return the token's claims. Raises ValueError when the token is invalid."""
        if not self.client_id:
            raise IdentityConfigurationError("GOOGLE_CLIENT_ID is not set")

        claims = id_token.verify_oauth2_token(token, self._transport, self.client_id)
        if not claims.get("sub"):
            raise ValueError("ID token has no subject")
        return claims


def get_identity_verifier(request: Request) -> GoogleIdentityVerifier:
    verifier = getattr(request.app.state, "identity", None)
    if verifier is None:
        logger.error("Identity verifier was not initialised at startup")
        raise HTTPException(status_code=500, detail="Server configuration error")
    return verifier


def sync_user_from_claims(db: Session, claims: dict, settings: Settings) -> User:
    """
    Upsert the user identified by the token subject.

    New users are created from the claims. For existing users the email
    follows the identity provider, while name and picture belong to the user
    once set (see ``PUT /api/user/profile``) and are only filled while empty.
    """
    profile = {
        "email": claims.get("email"),
        "first_name": claims.get("given_name"),
        "last_name": claims.get("family_name"),
        "profile_image_url": claims.get("picture"),
    }

    user = db.query(User).filter(User.provider_sub == claims["sub"]).first()
    if user:
        changed = False
        for field, value in profile.items():
            if value is None or getattr(user, field) == value:
                continue
            if field == "email" or getattr(user, field) is None:
                setattr(user, field, value)
                changed = True
        if changed:
            db.commit()
            db.refresh(user)
        return user

    email = (profile["email"] or "").lower()
    user = User(
        provider_sub=claims["sub"],
        is_premium=False,
        is_admin=bool(email) and email in settings.admin_emails,
        **profile,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # First requests of a new user raced each other
        db.rollback()
        return db.query(User).filter(User.provider_sub == claims["sub"]).one()

    db.refresh(user)
    logger.info("Created user %s on first login", user.id)
    return user


def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
    verifier: GoogleIdentityVerifier = Depends(get_identity_verifier),
    settings: Settings = Depends(get_settings),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """
    The signed-in user, or None for anonymous callers.
    🔒 A token that is present but invalid is rejected, never treated as anonymous.
    """
    if credentials is None:
        return None

    try:
        claims = verifier.verify(credentials.credentials)
    except IdentityConfigurationError as e:
        logger.critical("Cannot verify ID tokens: %s", e)
        raise HTTPException(status_code=500, detail="Server configuration error")
    except ValueError as e:
        # e.g. "Token expired", "Audience mismatch"
        logger.info("Token validation failed: %s", e)
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    return sync_user_from_claims(db, claims, settings)


def get_current_user(user: Optional[User] = Depends(get_optional_user)) -> User:
    if user is None:
        raise HTTPException(status_code=401, detail="Authentication required")
    return user


def require_admin(user: User = Depends(get_current_user)) -> User:
    if not user.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    return user
