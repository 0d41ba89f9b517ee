"""Authgate Configuration - Pydantic Settings."""

import secrets
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_SUPPORTED_JWT_ALGORITHMS = ("HS256", "HS384", "HS512")
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# Generated once per process when JWT_SECRET_KEY is not configured.
# Tokens signed with it do not survive a restart.
_EPHEMERAL_JWT_SECRET = secrets.token_urlsafe(48)


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Authgate"
    app_version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"

    # Server
    host: str = "127.0.0.1"
    port: int = Field(default=8000, ge=1, le=65535)

    # Database (PostgreSQL via asyncpg in production, SQLite for local development)
    database_url: str = "sqlite+aiosqlite:///./authgate.db"
    db_pool_size: int = Field(default=20, ge=1)
    db_max_overflow: int = Field(default=20, ge=0)
    db_pool_timeout: int = Field(default=30, ge=1)
    db_pool_recycle: int = Field(default=1800, ge=-1)

    # Tokens
    jwt_secret_key: str = ""
    jwt_algorithm: str = "HS256"
    jwt_ttl_minutes: int = Field(default=60, ge=1)
    jwt_issuer: str = "authgate"

    # Argon2id cost parameters
    argon2_time_cost: int = Field(default=3, ge=1)
    argon2_memory_cost: int = Field(default=65536, ge=8)
    argon2_parallelism: int = Field(default=4, ge=1)

    # Login throttling (failed attempts per client IP)
    login_max_attempts: int = Field(default=5, ge=1)
    login_window_seconds: int = Field(default=60, ge=1)

    # Background purge of expired revocation entries
    blacklist_cleanup_interval_seconds: int = Field(default=300, ge=1)

    # CORS
    cors_origins: str = "http://localhost:3000"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(_LOG_LEVELS)}")
        return level

    @field_validator("jwt_algorithm")
    @classmethod
    def validate_jwt_algorithm(cls, v: str) -> str:
        algorithm = v.upper()
        if algorithm not in _SUPPORTED_JWT_ALGORITHMS:
            raise ValueError(
                f"jwt_algorithm must be one of {', '.join(_SUPPORTED_JWT_ALGORITHMS)}"
            )
        return algorithm

    @field_validator("jwt_secret_key")
    @classmethod
    def validate_jwt_secret_key(cls, v: str) -> str:
        if v and len(v) < 32:
            raise ValueError("jwt_secret_key must be at least 32 characters long")
        return v

    @property
    def effective_jwt_secret_key(self) -> str:
        """Configured signing key, or the per-process fallback."""
        return self.jwt_secret_key or _EPHEMERAL_JWT_SECRET

    @property
    def cors_origins_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    def check_security_configuration(self) -> list[str]:
        """Return warnings about insecure settings (logged at startup)."""
        warnings: list[str] = []
        if not self.jwt_secret_key:
            warnings.append(
                "JWT_SECRET_KEY is not set; using an ephemeral key. "
                "Issued tokens will be invalid after a restart."
            )
        if "*" in self.cors_origins_list:
            warnings.append("CORS_ORIGINS allows any origin")
        if self.debug:
            warnings.append("DEBUG is enabled; API docs are publicly exposed")
        return warnings


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
