"""
Application configuration.

All configuration is loaded from environment variables.
Never hardcode secrets or connection strings in code.
"""

import os
from decimal import Decimal
from functools import lru_cache

from dotenv import load_dotenv

# Load .env file into environment variables
load_dotenv()


class Settings:
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "Explosives Inventory Ledger"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"

    # Server
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8000"))

    # Database
    DATABASE_URL: str = os.getenv(
        "DATABASE_URL",
        "postgresql://localhost:5432/explosives_inventory"
    )

    # Environment
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Business rules
    # Format check only. Authorization numbers are never verified
    # against an issuing authority.
    AUTHORIZATION_NUMBER_PATTERN: str = os.getenv(
        "AUTHORIZATION_NUMBER_PATTERN", r"^AUTH-\d{3,}$"
    )
    REQUIRE_VARIANCE_REASON: bool = (
        os.getenv("REQUIRE_VARIANCE_REASON", "true").lower() == "true"
    )
    SIGNIFICANT_VARIANCE_UNITS: Decimal = Decimal(
        os.getenv("SIGNIFICANT_VARIANCE_UNITS", "10")
    )
    SIGNIFICANT_VARIANCE_PERCENT: Decimal = Decimal(
        os.getenv("SIGNIFICANT_VARIANCE_PERCENT", "5")
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Return cached settings instance.

    Using lru_cache means the Settings object is created once
    and reused for all subsequent calls. This avoids reading
    environment variables repeatedly.
    """
    return Settings()
