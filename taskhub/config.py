"""Application configuration using Pydantic Settings"""

from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Application
    environment: str = "development"
    app_name: str = "TaskHub"
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # Database
    database_url: str
    database_pool_size: int = 5
    database_max_overflow: int = 10

    # Redis
    redis_url: str = "redis://localhost:6379/0"

    # Security
    secret_key: str
    jwt_secret: Optional[str] = None
    jwt_algorithm: str = "HS256"
    jwt_expiration_hours: int = 24
    bcrypt_rounds: int = 12

    # Session cookie
    session_cookie_name: str = "taskhub_session"
    session_cookie_secure: bool = False

    # Login throttling
    login_max_attempts: int = 5
    login_lockout_seconds: int = 900

    # Logging
    log_level: str = "INFO"

    # Problem details
    error_type_base: str = "https://taskhub.dev/errors"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def async_database_url(self) -> str:
        """Database URL with an async driver"""
        # Convert postgresql:// to postgresql+asyncpg:// for async support
        return self.database_url.replace("postgresql://", "postgresql+asyncpg://", 1)


# Global settings instance
settings = Settings()
