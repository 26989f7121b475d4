# backend/rsvp_api/core/config.py
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


INSECURE_JWT_SECRETS = {"supersecret", "changeme", "secret", ""}


class Settings(BaseSettings):
    """
    Central configuration for the RSVP backend.

    All values come from environment variables or backend/.env.
    Built once by create_app() and handed to every service that needs it:
    - environment / logging
    - database URL
    - CORS site origin
    - admin credential + token signing
    - notification email addresses and provider
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # High-level environment flags
    environment: str = Field(
        default="dev",
        description="Deployment environment identifier (dev|staging|prod)",
    )
    debug: bool = Field(default=True)
    log_level: str = Field(default="INFO")

    # Database
    database_url: str = Field(
        default="sqlite:///./rsvp.db",
        description="SQLAlchemy-style DB URL (SQLite for dev, Postgres in prod).",
    )
    auto_create_tables: bool = Field(
        default=True,
        description="Run Base.metadata.create_all at startup. Disable when Alembic owns the schema.",
    )

    # CORS: the one site allowed to call us
    site_origin: str = Field(
        default="http://localhost:5173",
        description="Origin of the guest/admin frontend.",
    )

    # Admin credential: sha256_hex(salt + password) must equal the hash
    admin_password_salt: str = Field(default="")
    admin_password_hash: str = Field(default="")

    # Auth / tokens
    jwt_secret: str = Field(
        default="supersecret",
        description="JWT signing secret; override in all non-dev environments.",
    )
    jwt_algorithm: str = Field(default="HS256")
    admin_token_ttl_seconds: int = Field(
        default=60 * 60 * 6,
        description="Admin token lifetime in seconds (6 hours).",
    )

    # Only honour CF-Connecting-IP / X-Forwarded-For when a proxy we run sets them
    trust_proxy_headers: bool = Field(default=False)

    # Login throttling (per client IP)
    login_rate_limit: int = Field(default=10)
    login_rate_window: int = Field(default=60)

    # Notifications
    rsvp_to_email: str = Field(default="")
    rsvp_from_email: str = Field(default="")
    email_provider: str = Field(
        default="log",
        description="resend | log",
    )
    resend_api_key: Optional[str] = Field(default=None)
    email_timeout_seconds: float = Field(default=10.0)

    # How long shutdown waits for in-flight notifications
    background_drain_timeout_seconds: float = Field(default=30.0)

    @property
    def is_prod(self) -> bool:
        """
        Convenience flag: true if running in a production-like environment.
        """
        return self.environment.lower() in {"prod", "production"}

    @property
    def admin_login_configured(self) -> bool:
        return bool(self.admin_password_hash.strip())


@lru_cache()
def get_settings() -> Settings:
    """
    Cached settings instance so the process only parses env once.
    """
    return Settings()
