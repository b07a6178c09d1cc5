import os
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()

PREMIUM_ACCESS_AUTHENTICATED = "authenticated"
PREMIUM_ACCESS_SUBSCRIBER = "subscriber"


def _split_csv(value: str | None) -> list[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings:
    """Runtime configuration, read once from the environment (and .env)."""

    def __init__(self):
        self.env = os.getenv("ENV", "dev")
        self.database_url = os.getenv("DATABASE_URL", "sqlite:///./portfolio.db")
        self.log_level = os.getenv("LOG_LEVEL", "INFO").upper()
        self.cors_origins = _split_csv(
            os.getenv("CORS_ORIGINS", "http://localhost:5173,http://localhost:8000")
        )

        # OpenID Connect (Google) client id, used as the ID token audience
        self.google_client_id = os.getenv("GOOGLE_CLIENT_ID")
        self.admin_emails = {email.lower() for email in _split_csv(os.getenv("ADMIN_EMAILS"))}

        # Stripe
        self.stripe_secret_key = os.getenv("STRIPE_SECRET_KEY")
        self.stripe_publishable_key = os.getenv("STRIPE_PUBLISHABLE_KEY")
        self.stripe_webhook_secret = os.getenv("STRIPE_WEBHOOK_SECRET")

        premium_access = os.getenv("PREMIUM_ACCESS", PREMIUM_ACCESS_AUTHENTICATED).lower()
        if premium_access not in (PREMIUM_ACCESS_AUTHENTICATED, PREMIUM_ACCESS_SUBSCRIBER):
            raise ValueError(
                f"PREMIUM_ACCESS must be '{PREMIUM_ACCESS_AUTHENTICATED}' or "
                f"'{PREMIUM_ACCESS_SUBSCRIBER}', got '{premium_access}'"
            )
        self.premium_access = premium_access

    @property
    def is_prod(self) -> bool:
        return self.env == "prod"

    @property
    def payments_configured(self) -> bool:
        return bool(self.stripe_secret_key)


@lru_cache
def get_settings() -> Settings:
    return Settings()
