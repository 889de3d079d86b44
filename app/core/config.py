"""
app/core/config.py

Purpose: Application configuration

- Loads environment variables
- Centralizes config values (database URL, secrets, provider URLs)
- Validates configuration on startup
- Environment-specific settings
"""

from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, Literal


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Validates all required configs on startup.
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
    )

    # Environment
    ENVIRONMENT: Literal["development", "staging", "production"] = "development"

    # Relational database
    DATABASE_URL: str = Field(
        default="sqlite+aiosqlite:///./udyam.db",
        description="SQLAlchemy async database URL"
    )
    DATABASE_ECHO: bool = Field(
        default=False,
        description="Echo SQL statements to the log"
    )

    # Mock verification
    VERIFICATION_DELAY_SECONDS: float = Field(
        default=0.0,
        description="Simulated latency of the mock Aadhaar/PAN verifiers"
    )

    # PIN code lookup providers
    POSTPIN_BASE_URL: str = Field(
        default="https://api.postalpincode.in",
        description="Primary PIN code lookup API"
    )
    INDIA_POST_BASE_URL: str = Field(
        default="https://api.data.gov.in/resource/6176ee09-3d56-4a3b-8115-21841576b2f6",
        description="Fallback PIN code lookup API (data.gov.in)"
    )
    INDIA_POST_API_KEY: str = Field(
        default="demo-key",
        description="data.gov.in API key"
    )
    LOCATION_SERVICE_TIMEOUT: float = Field(
        default=5.0,
        description="PIN code provider request timeout in seconds"
    )
    LOCATION_CACHE_TTL_HOURS: int = Field(
        default=24,
        description="How long a resolved PIN code stays cached"
    )

    # Application
    DEBUG: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    API_PREFIX: str = Field(
        default="/api/v1",
        description="API route prefix"
    )
    CORS_ORIGINS: list = Field(
        default=["*"],
        description="Allowed CORS origins"
    )

    # Security
    SECRET_KEY: str = Field(
        default="change-me-in-production",
        description="Application secret key"
    )

    @field_validator("SECRET_KEY")
    @classmethod
    def validate_secret_key(cls, v: str, info: ValidationInfo) -> str:
        """Ensure secret key is changed in production."""
        if info.data.get("ENVIRONMENT") == "production" and v == "change-me-in-production":
            raise ValueError("SECRET_KEY must be changed in production environment")
        return v

    @field_validator("VERIFICATION_DELAY_SECONDS")
    @classmethod
    def validate_delay(cls, v: float) -> float:
        if v < 0:
            raise ValueError("VERIFICATION_DELAY_SECONDS cannot be negative")
        return v

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENVIRONMENT == "production"


# Global settings instance
settings = Settings()


def validate_settings():
    """
    Validates critical settings on application startup.
    Raises ValueError if any required setting is missing or invalid.
    """
    errors = []

    if not settings.DATABASE_URL:
        errors.append("DATABASE_URL is required")

    if not settings.POSTPIN_BASE_URL:
        errors.append("POSTPIN_BASE_URL is required")

    # Production-specific validations
    if settings.is_production:
        if settings.DATABASE_URL.startswith("sqlite"):
            errors.append("DATABASE_URL must point to a server database in production")
        if settings.INDIA_POST_API_KEY == "demo-key":
            errors.append("INDIA_POST_API_KEY is required in production")

    if errors:
        raise ValueError(f"Configuration validation failed: {', '.join(errors)}")

    return True
