"""Application configuration."""

import os
from typing import Any

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings.

    All settings can be overridden with environment variables.
    """

    # API
    API_V1_STR: str = "/wfzo/api/v1"
    PROJECT_NAME: str = "WFZO API"

    # Critical settings (must be provided)
    APP_DATABASE_URL: str
    API_KEY: str

    # Environment
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    DEBUG: bool = os.getenv("DEBUG", "").lower() == "true"

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Redis / rate limiting
    REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    PUBLIC_FORM_RATE_LIMIT_PER_MINUTE: int = int(
        os.getenv("PUBLIC_FORM_RATE_LIMIT_PER_MINUTE", "10")
    )

    # CORS
    BACKEND_CORS_ORIGINS: list[str] = []

    # RabbitMQ
    RABBITMQ_HOST: str = os.getenv("RABBITMQ_HOST", "localhost")
    RABBITMQ_PORT: int = int(os.getenv("RABBITMQ_PORT", "5672"))
    RABBITMQ_USER: str = os.getenv("RABBITMQ_USER", "guest")
    RABBITMQ_PASSWORD: str = os.getenv("RABBITMQ_PASSWORD", "guest")
    RABBITMQ_VHOST: str = os.getenv("RABBITMQ_VHOST", "/")
    EMAIL_MAX_RETRIES: int = int(os.getenv("EMAIL_MAX_RETRIES", "3"))

    # Email delivery
    AZURE_COMMUNICATION_CONNECTION_STRING: str = os.getenv(
        "AZURE_COMMUNICATION_CONNECTION_STRING", ""
    )
    AZURE_COMMUNICATION_SENDER_ADDRESS: str = os.getenv(
        "AZURE_COMMUNICATION_SENDER_ADDRESS", "donotreply@theonezone.org"
    )
    WFZO_ADMIN_EMAIL: str = os.getenv("WFZO_ADMIN_EMAIL", "admin@wfzo.org")

    # Frontends
    FRONTEND_BASE_URL: str = os.getenv("FRONTEND_BASE_URL", "http://localhost:3000")
    ADMIN_PORTAL_URL: str = os.getenv(
        "ADMIN_PORTAL_URL", "https://portal.worldfzo.org"
    )

    # Membership workflow
    REQUIRED_COMMITTEE_ACTIONS: int = int(os.getenv("REQUIRED_COMMITTEE_ACTIONS", "2"))
    ALLOWED_USER_COUNT: int = int(os.getenv("ALLOWED_USER_COUNT", "5"))
    BANK_ACCOUNT_NUMBER: str = os.getenv("BANK_ACCOUNT_NUMBER", "")
    BANK_IBAN: str = os.getenv("BANK_IBAN", "")
    BANK_ACCOUNT_HOLDER: str = os.getenv("BANK_ACCOUNT_HOLDER", "")

    # Microsoft Entra ID
    ENTRA_INTEGRATION_MODE: str = os.getenv("ENTRA_INTEGRATION_MODE", "real")
    ENTRA_TYPE: str = os.getenv("ENTRA_TYPE", "internal")
    ENTRA_TENANT_ID: str = os.getenv("ENTRA_TENANT_ID", "")
    ENTRA_CLIENT_ID: str = os.getenv("ENTRA_CLIENT_ID", "")
    ENTRA_CLIENT_SECRET: str = os.getenv("ENTRA_CLIENT_SECRET", "")
    ENTRA_DEFAULT_DOMAIN: str = os.getenv("ENTRA_DEFAULT_DOMAIN", "")
    ENTRA_EXTERNAL_DOMAIN: str = os.getenv(
        "ENTRA_EXTERNAL_DOMAIN", "worldfzousers.onmicrosoft.com"
    )
    ENTRA_JWKS_CACHE_SECONDS: int = int(os.getenv("ENTRA_JWKS_CACHE_SECONDS", "3600"))

    # Google Analytics
    GA_PROPERTY_ID: str = os.getenv("GA_PROPERTY_ID", "")
    GA_CLIENT_EMAIL: str = os.getenv("GA_CLIENT_EMAIL", "")
    GA_PRIVATE_KEY: str = os.getenv("GA_PRIVATE_KEY", "")

    # Strapi CMS
    STRAPI_API_BASE_URL: str = os.getenv("STRAPI_API_BASE_URL", "")
    STRAPI_PREVIEW_TOKEN: str = os.getenv("STRAPI_PREVIEW_TOKEN", "")
    STRAPI_TIMEOUT_SECONDS: float = float(os.getenv("STRAPI_TIMEOUT_SECONDS", "10"))

    model_config = SettingsConfigDict(
        case_sensitive=True,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Ignore extra environment variables
    )

    def __init__(self, **kwargs: Any):
        super().__init__(**kwargs)

        # Validate critical settings
        critical_settings = [
            ("APP_DATABASE_URL", self.APP_DATABASE_URL),
            ("API_KEY", self.API_KEY),
        ]

        missing_settings = [name for name, value in critical_settings if not value]
        if missing_settings:
            raise ValueError(
                f"Critical settings missing: {', '.join(missing_settings)}"
            )


# Create global settings instance
settings = Settings()
