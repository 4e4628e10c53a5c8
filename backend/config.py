"""Application configuration management."""
from pydantic import model_validator, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
from functools import lru_cache
from sqlalchemy.engine.url import make_url, URL
from sqlalchemy.exc import ArgumentError
from typing import Annotated, Optional
import logging

SQLITE_LOCAL_URL = "sqlite+aiosqlite:///./feedback.db"


def _parse_role_set(value) -> set[str]:
    if isinstance(value, str):
        return {item.strip().lower() for item in value.split(",") if item.strip()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return {str(item).strip().lower() for item in value if str(item).strip()}
    raise TypeError("role lists must be provided as a string or sequence")


def role_in(role: str | None, roles) -> bool:
    """Case-insensitive membership test for a user role."""
    if not role:
        return False
    return role.strip().lower() in {item.lower() for item in roles}


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str = SQLITE_LOCAL_URL
    db_pool_size: int = 5
    db_max_overflow: int = 10

    # Application
    frontend_url: str = "http://localhost:3000"
    environment: str = "development"
    secret_key: str = "dev-secret-key-change-in-production"
    jwt_algorithm: str = "HS256"  # Use HS256 for symmetric signing
    access_token_exp_minutes: int = 120  # Access tokens valid for 2 hours
    access_token_cookie_name: str = "feedback_access_token"
    log_dir: str = "logs"

    # Roles
    elevated_roles: Annotated[set[str], NoDecode] = {"hr", "admin"}  # See every survey regardless of audience
    survey_author_roles: Annotated[set[str], NoDecode] = {"hr", "admin", "manager"}

    # Surveys
    rating_min: int = 1
    rating_max: int = 5
    responses_page_limit: int = 100

    @field_validator("elevated_roles", "survey_author_roles", mode="before")
    @classmethod
    def parse_roles(cls, value, info):
        """Parse comma-separated role lists from environment variables."""
        if value is None:
            return cls.model_fields[info.field_name].default
        return _parse_role_set(value)

    def is_elevated_role(self, role: str | None) -> bool:
        """Whether the role administers every survey."""
        return role_in(role, self.elevated_roles)

    @model_validator(mode="after")
    def validate_all_config(self):
        """Validate security configuration and normalize Postgres URLs."""
        logger = logging.getLogger(__name__)

        # Security validation
        if self.environment == "production":
            if self.secret_key == "dev-secret-key-change-in-production":
                raise ValueError("secret_key must be changed from default value in production")

        # Validate JWT algorithm
        if self.jwt_algorithm not in ["HS256", "HS384", "HS512"]:
            raise ValueError(f"Unsupported JWT algorithm: {self.jwt_algorithm}. Use HS256, HS384, or HS512.")

        if self.access_token_exp_minutes < 1 or self.access_token_exp_minutes > 1440:  # 1 min to 24 hours
            raise ValueError("access_token_exp_minutes must be between 1 and 1440 (24 hours)")

        if self.rating_min > self.rating_max:
            raise ValueError("rating_min must not exceed rating_max")

        # Database URL normalization
        url = self.database_url
        if not url:
            logger.warning("Empty DATABASE_URL, using SQLite fallback")
            self.database_url = SQLITE_LOCAL_URL
            return self

        parsed: Optional[URL] = None
        try:
            parsed = make_url(url)
        except ArgumentError as e:
            logger.error(f"Failed to parse DATABASE_URL, falling back to SQLite: {e}")
            self.database_url = SQLITE_LOCAL_URL
            return self

        drivername = parsed.drivername
        if drivername.startswith("postgres") and "+asyncpg" not in drivername:
            old_drivername = drivername
            parsed = parsed.set(drivername="postgresql+asyncpg")
            logger.info(f"Driver normalized: {old_drivername} -> {parsed.drivername}")
        # Use render_as_string to properly re-encode special characters in password
        self.database_url = parsed.render_as_string(hide_password=False)

        return self

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
