"""
app/core/config.py

Purpose: Application configuration

- Loads environment variables
- Centralizes config values (DB URI, bot tokens, timeouts)
- Validates configuration on startup
- Environment-specific settings
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings
from typing import Optional, Literal

from app.core.exceptions import ConfigurationError


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Validates all required configs on startup.
    """

    # Environment
    ENVIRONMENT: Literal["development", "staging", "production"] = "development"

    # MongoDB
    MONGODB_URL: str = Field(
        default="mongodb://localhost:27017",
        description="MongoDB connection URI"
    )
    MONGODB_DB_NAME: str = Field(
        default="chat4bread",
        description="MongoDB database name"
    )

    # Telegram
    TELEGRAM_BOT_TOKEN: Optional[str] = Field(
        default=None,
        description="Telegram bot token"
    )
    TELEGRAM_API_URL: str = Field(
        default="https://api.telegram.org",
        description="Telegram Bot API base URL"
    )
    TELEGRAM_WEBHOOK_SECRET: Optional[str] = Field(
        default=None,
        description="Expected X-Telegram-Bot-Api-Secret-Token header value"
    )

    # SAP Conversational AI (intent extraction)
    CAI_TOKEN: Optional[str] = Field(
        default=None,
        description="SAP Conversational AI request token"
    )
    CAI_API_URL: str = Field(
        default="https://api.cai.tools.sap/v2/request",
        description="SAP Conversational AI request endpoint"
    )
    CAI_LANGUAGE: str = Field(
        default="en",
        description="Language passed to the intent extractor"
    )

    # Timeouts
    COLLABORATOR_TIMEOUT_SECONDS: float = Field(
        default=5.0,
        description="Timeout for each call to MongoDB, CAI and Telegram"
    )
    REQUEST_TIMEOUT_SECONDS: float = Field(
        default=30.0,
        description="Upper bound for processing one inbound message"
    )

    # Marketplace
    NEARBY_RADIUS_METERS: float = Field(
        default=2000.0,
        description="Search radius for nearby farmers"
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

    @field_validator("COLLABORATOR_TIMEOUT_SECONDS", "REQUEST_TIMEOUT_SECONDS", "NEARBY_RADIUS_METERS")
    @classmethod
    def validate_positive(cls, v: float) -> float:
        """Timeouts and radius must be positive."""
        if v <= 0:
            raise ValueError("must be positive")
        return v

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENVIRONMENT == "production"

    class Config:
        env_file = ".env"
        case_sensitive = True
        env_file_encoding = "utf-8"


# Global settings instance
settings = Settings()


def validate_settings(config: Optional[Settings] = None):
    """
    Validates critical settings on application startup.

    Raises:
        ConfigurationError: Listing every missing or inconsistent setting
    """
    config = config or settings
    errors = []

    if not config.MONGODB_URL:
        errors.append("MONGODB_URL is required")

    if not config.CAI_API_URL:
        errors.append("CAI_API_URL is required")

    if config.REQUEST_TIMEOUT_SECONDS < config.COLLABORATOR_TIMEOUT_SECONDS:
        errors.append("REQUEST_TIMEOUT_SECONDS must not be lower than COLLABORATOR_TIMEOUT_SECONDS")

    # Production-specific validations
    if config.is_production:
        if not config.TELEGRAM_BOT_TOKEN:
            errors.append("TELEGRAM_BOT_TOKEN is required in production")
        if not config.CAI_TOKEN:
            errors.append("CAI_TOKEN is required in production")
        if not config.TELEGRAM_WEBHOOK_SECRET:
            errors.append("TELEGRAM_WEBHOOK_SECRET is required in production")

    if errors:
        raise ConfigurationError(
            f"Configuration validation failed: {', '.join(errors)}",
            details={"errors": errors}
        )

    return True
