"""
Application Configuration
Environment variables and settings management
"""

from datetime import timedelta
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    # Application
    ENVIRONMENT: str = Field(default="development", description="Application environment")
    DEBUG: bool = Field(default=False, description="Debug mode")
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")

    # Database
    DATABASE_URL: str = Field(..., description="Relational database URL")
    DB_POOL_SIZE: int = Field(default=10, description="Database connection pool size")
    DB_MAX_OVERFLOW: int = Field(default=20, description="Database max overflow connections")
    DB_POOL_TIMEOUT: int = Field(default=30, description="Database pool timeout in seconds")
    DB_POOL_RECYCLE: int = Field(default=3600, description="Database pool recycle time in seconds")

    # API keys (JWT)
    JWT_SECRET: str = Field(..., min_length=1, description="HMAC secret for API key tokens")
    JWT_ALGORITHM: str = Field(default="HS256", description="JWT algorithm")
    JWT_DEV_EXPIRY_DAYS: int = Field(default=30, gt=0, description="Dev API key lifetime in days")
    JWT_PROD_EXPIRY_DAYS: int = Field(default=365, gt=0, description="Prod API key lifetime in days")

    # Google OAuth
    GOOGLE_CLIENT_ID: str = Field(default="", description="Google OAuth client ID / ID token audience")
    GOOGLE_CLIENT_SECRET: str = Field(default="", description="Google OAuth client secret")
    OAUTH_REDIRECT_URL: str = Field(
        default="http://localhost:8080/auth/google/callback",
        description="OAuth callback URL registered with Google",
    )

    # Web sessions
    SESSION_DURATION: int = Field(default=86400, gt=0, description="Default session lifetime in seconds")
    SESSION_REMEMBER_DURATION: int = Field(default=2592000, gt=0, description="Remember-me session lifetime in seconds")
    SESSION_EXTEND_THRESHOLD: float = Field(default=0.5, gt=0, le=1, description="Extend when less than this fraction remains")
    SESSION_CLEANUP_INTERVAL: int = Field(default=3600, gt=0, description="Expired session sweep interval in seconds")
    SESSION_COOKIE_NAME: str = Field(default="session_id", description="Session cookie name")

    # Member granted ADMIN at startup when set
    BOOTSTRAP_ADMIN_EMAIL: str = Field(default="", description="Email of the bootstrap administrator")

    # CORS (comma separated); the first origin is the frontend used for OAuth redirects
    ALLOWED_ORIGINS: str = Field(default="http://localhost:3000", description="Allowed CORS origins")

    @field_validator("ENVIRONMENT")
    @classmethod
    def validate_environment(cls, v):
        """Validate environment value"""
        allowed = ["development", "staging", "production"]
        if v not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level"""
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in allowed:
            raise ValueError(f"Log level must be one of: {allowed}")
        return v.upper()

    model_config = {
        "env_file": ".env",
        "case_sensitive": True,
        "extra": "ignore",
    }

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def allowed_origins(self) -> List[str]:
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",") if origin.strip()]

    @property
    def frontend_url(self) -> str:
        origins = self.allowed_origins
        return origins[0] if origins else "http://localhost:3000"

    @property
    def session_duration(self) -> timedelta:
        return timedelta(seconds=self.SESSION_DURATION)

    @property
    def session_remember_duration(self) -> timedelta:
        return timedelta(seconds=self.SESSION_REMEMBER_DURATION)

    @property
    def async_database_url(self) -> str:
        url = self.DATABASE_URL
        if url.startswith("postgresql://"):
            url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
        return url

    def database_config(self) -> dict:
        config = {"pool_pre_ping": True, "echo": self.ENVIRONMENT == "development" and self.DEBUG}
        # sqlite uses a static pool that rejects sizing arguments
        if not self.async_database_url.startswith("sqlite"):
            config.update(
                pool_size=self.DB_POOL_SIZE,
                max_overflow=self.DB_MAX_OVERFLOW,
                pool_timeout=self.DB_POOL_TIMEOUT,
                pool_recycle=self.DB_POOL_RECYCLE,
            )
        return config
