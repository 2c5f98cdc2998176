"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache) — single instance per process

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support (ADR: developer UX)
    - Defaults provided for all non-secret settings: works out-of-the-box with docker-compose
    - retain_hidden_answers defaults to True: answers a respondent gave before a
      condition hid the question are still forwarded (ADR: pending product decision)
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    database_url: str = (
        "postgresql+asyncpg://airform:airform@db:5432/airform"
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosted Postgres provides postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10

    # Airtable OAuth
    airtable_client_id: str = "airtable-client-placeholder"
    airtable_client_secret: str = "airtable-secret-placeholder"
    airtable_redirect_uri: str = "http://localhost:8000/api/v1/auth/callback"
    airtable_scopes: str = "data.records:read data.records:write schema.bases:read"

    # Airtable API
    airtable_api_url: str = "https://api.airtable.com/v0"
    airtable_content_url: str = "https://content.airtable.com/v0"
    airtable_auth_url: str = "https://airtable.com/oauth2/v1"
    airtable_timeout_seconds: int = 30
    airtable_max_retries: int = 3
    airtable_base_delay_ms: int = 1000
    airtable_max_delay_ms: int = 30_000

    # Forms
    retain_hidden_answers: bool = True
    analytics_recent_days: int = 7

    # API
    frontend_url: str = "http://localhost:3000"
    cors_origins: list[str] = ["http://localhost:3000"]
    cookie_secure: bool = False

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
