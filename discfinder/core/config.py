from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings

# .env lives at the project root: discfinder/core/config.py -> core -> discfinder -> root
_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = _ROOT / ".env"


class Settings(BaseSettings):
    secret_key: str = "change-me-in-production"
    database_url: str = "sqlite:///./discfinder.db"
    environment: str = "development"
    # Comma separated origin list; "*" in development
    cors_origins: str = "*"
    rate_limit_per_minute: int = 60
    # Public lookup is unauthenticated, keep it tighter than the rest
    rate_limit_lookup_per_minute: int = 30
    # Identity provider: HS256 access tokens signed with this secret (falls back to secret_key)
    jwt_secret: str = ""
    jwt_audience: str = "authenticated"
    # Stripe hosted checkout + webhooks
    stripe_secret_key: str = ""
    stripe_webhook_secret: str = ""
    stripe_api_base: str = "https://api.stripe.com/v1"
    stripe_currency: str = "usd"
    stripe_success_url: str = "http://127.0.0.1:8000/orders?checkout=success"
    stripe_cancel_url: str = "http://127.0.0.1:8000/orders?checkout=cancelled"
    webhook_tolerance_seconds: int = 300
    sticker_unit_price_cents: int = 100  # 1.00 per sticker
    # Object storage (local filesystem backend) and signed URLs
    storage_root: str = "./data/storage"
    storage_signing_key: str = ""
    public_base_url: str = "http://127.0.0.1:8000"
    signed_url_ttl_seconds: int = 3600
    # Printed on every sticker label: <lookup_base_url>/<short_code>
    lookup_base_url: str = "https://discfinder.app/d"

    model_config = {
        "env_file": _ENV_FILE if _ENV_FILE.is_file() else ".env",
        "extra": "ignore",
    }

    @field_validator("stripe_secret_key", "stripe_webhook_secret", "jwt_secret", mode="before")
    @classmethod
    def strip_secret(cls, v: str | None) -> str:
        """Whitespace from copy/paste breaks signature checks."""
        return (v or "").strip()

    @property
    def effective_jwt_secret(self) -> str:
        return self.jwt_secret or self.secret_key

    @property
    def effective_storage_signing_key(self) -> str:
        return self.storage_signing_key or self.secret_key


settings = Settings()


def is_stripe_configured() -> bool:
    return bool(settings.stripe_secret_key)
