"""Application configuration with validation."""

from enum import Enum
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator
from typing import List


class Environment(str, Enum):
    """Application environment."""
    DEVELOPMENT = "development"
    PRODUCTION = "production"


class ConfigurationError(Exception):
    """Raised when application configuration is invalid for the environment."""
    pass


_DEFAULT_JWT_SECRET = "dev-insecure-key-change-me"


class Settings(BaseSettings):
    """
    Application settings, read from environment variables and ``.env``.

    Variable names are case-insensitive: ``DATABASE_URL`` sets ``database_url``.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Application environment (development/production)"
    )

    cors_allowed_origins: str = Field(
        default="http://localhost:3000,http://localhost:4000",
        description="Allowed CORS origins (comma-separated)"
    )

    # Database Configuration
    database_url: str = Field(
        default="sqlite:///./quoteledger.db",
        description="Database connection URL"
    )
    # Connection pool tuning (PostgreSQL only; ignored for SQLite).
    db_pool_size: int = Field(
        default=5,
        description="Number of persistent database connections"
    )
    db_max_overflow: int = Field(
        default=10,
        description="Extra connections allowed during traffic bursts"
    )
    db_pool_timeout: int = Field(
        default=30,
        description="Seconds to wait for a connection from the pool before raising"
    )
    db_pool_recycle: int = Field(
        default=1800,
        description="Seconds before a connection is recycled"
    )

    # Authentication
    # Tokens are issued by the external auth service; we only verify them.
    # AUTH_ENABLED=false trusts the X-Owner-Id header instead (dev only).
    jwt_secret_key: str = Field(
        default=_DEFAULT_JWT_SECRET,
        description="JWT verification secret shared with the auth service"
    )
    jwt_algorithm: str = Field(default="HS256")
    auth_enabled: bool = Field(
        default=False,
        description="Require a signed bearer token on every quote endpoint"
    )

    # Versioning
    # Upper bound on how long a save/restore waits for the per-quote lock
    # before failing with BUSY.
    lock_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Seconds to wait for the per-quote lock before raising BUSY"
    )

    # Logging Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    log_format: str = Field(
        default="json",
        description="Log output format: 'json' for structured, 'text' for human-readable"
    )

    def get_cors_origins(self) -> List[str]:
        """
        Get CORS origins as a list.

        Parses comma-separated string and validates no wildcards.
        """
        origins = [origin.strip() for origin in self.cors_allowed_origins.split(',') if origin.strip()]

        if "*" in origins:
            raise ValueError(
                "Wildcard CORS (*) not allowed. "
                "Specify explicit origins in CORS_ALLOWED_ORIGINS"
            )

        return origins

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is one of the standard Python logging levels."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level. Must be one of: {valid_levels}")
        return v_upper

    @field_validator('log_format')
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        v_lower = v.lower()
        if v_lower not in ('json', 'text'):
            raise ValueError("Invalid log format. Must be 'json' or 'text'")
        return v_lower

    def validate_production_config(self) -> None:
        """Validate configuration for production environment.

        In production, fails startup if security-critical settings use insecure
        defaults. In development this is a no-op; main.py logs warnings instead.

        Raises:
            ConfigurationError: If production config is insecure.
        """
        errors: list[str] = []

        if self.jwt_secret_key == _DEFAULT_JWT_SECRET:
            errors.append(
                "JWT_SECRET_KEY is using the default insecure value. "
                "Use the secret shared with the auth service."
            )

        if not self.auth_enabled:
            errors.append(
                "AUTH_ENABLED is false. "
                "Owner identity would be taken from an unauthenticated header."
            )

        if self.database_url.startswith("sqlite"):
            errors.append(
                "DATABASE_URL points at SQLite. "
                "Per-quote locking is only process-local on SQLite; use PostgreSQL."
            )

        if errors and self.environment == Environment.PRODUCTION:
            raise ConfigurationError(
                "Production configuration is insecure:\n  - " + "\n  - ".join(errors)
            )

    def uses_default_jwt_secret(self) -> bool:
        return self.jwt_secret_key == _DEFAULT_JWT_SECRET


# Global settings instance
settings = Settings()
