"""
Configuration settings for the CMS API and the public website API
"""
from functools import lru_cache
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///./cms.db"
DEFAULT_CMS_URL = "http://localhost:4000"
MIN_SESSION_SECRET_LENGTH = 16


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    # Runtime
    node_env: str = Field(default="development", alias="NODE_ENV")
    port: int = Field(default=4000, alias="PORT")
    log_level: str = Field(default="info", alias="LOG_LEVEL")
    log_file: Optional[str] = Field(default=None, alias="LOG_FILE")

    # Infrastructure configuration
    database_url: str = Field(default=DEFAULT_DATABASE_URL, alias="DATABASE_URL")
    redis_url: Optional[str] = Field(default=None, alias="REDIS_URL")

    # Sessions and origins
    session_secret: Optional[str] = Field(default=None, alias="SESSION_SECRET")
    allowed_origins: str = Field(default="", alias="ALLOWED_ORIGINS")

    # Admin UI rollout
    legacy_admin_url: str = Field(default="http://localhost:3000/admin", alias="LEGACY_ADMIN_URL")
    enable_new_admin: bool = Field(default=False, alias="ENABLE_NEW_ADMIN")
    admin_ui_dist: Optional[str] = Field(default=None, alias="ADMIN_UI_DIST")

    # Public website -> CMS proxy
    cms_internal_url: Optional[str] = Field(default=None, alias="CMS_INTERNAL_URL")
    cms_url: Optional[str] = Field(default=None, alias="CMS_URL")
    next_public_cms_url: Optional[str] = Field(default=None, alias="NEXT_PUBLIC_CMS_URL")
    cms_api_key: Optional[str] = Field(default=None, alias="CMS_API_KEY")
    site_url: Optional[str] = Field(default=None, alias="SITE_URL")
    blocked_ips: str = Field(default="", alias="BLOCKED_IPS")

    @property
    def is_production(self) -> bool:
        return self.node_env.lower() == "production"

    @property
    def is_development(self) -> bool:
        return self.node_env.lower() == "development"

    @property
    def allowed_origins_list(self) -> List[str]:
        return _split_csv(self.allowed_origins)

    @property
    def blocked_ips_set(self) -> set:
        return set(_split_csv(self.blocked_ips))

    @property
    def cms_base_url(self) -> str:
        """
        Resolve the CMS base URL without a trailing slash.

        Preference order: CMS_INTERNAL_URL (private network), CMS_URL,
        NEXT_PUBLIC_CMS_URL, then the localhost default.
        """
        resolved = self.cms_internal_url or self.cms_url or self.next_public_cms_url or DEFAULT_CMS_URL
        return resolved.rstrip("/")


def _split_csv(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def validate_runtime_config(settings: Settings) -> None:
    """
    Fail fast on configuration the CMS cannot run with.

    Raises:
        RuntimeError: If a required secret is missing or a value is out of range
    """
    problems = []

    if settings.node_env.lower() not in {"development", "test", "production"}:
        problems.append(f"NODE_ENV must be development, test or production (got {settings.node_env!r})")

    if not settings.session_secret:
        problems.append("SESSION_SECRET is required")
    elif len(settings.session_secret) < MIN_SESSION_SECRET_LENGTH:
        problems.append(f"SESSION_SECRET must be at least {MIN_SESSION_SECRET_LENGTH} characters long")

    if not 1024 <= settings.port <= 65535:
        problems.append("PORT must be between 1024 and 65535")

    if settings.is_production and "sqlite" in settings.database_url.lower():
        problems.append("SQLite is forbidden in production. Use a PostgreSQL DATABASE_URL.")

    if problems:
        raise RuntimeError(f"Invalid environment configuration: {'; '.join(problems)}")


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
