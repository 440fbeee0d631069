"""
Settings for the ledger service.

Values come from the process environment, optionally seeded
from a .env file in the working directory.
"""

import os
from decimal import Decimal
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()


class Settings:
    """Environment-backed settings. Read once, see get_settings()."""

    APP_NAME: str = "Group Ledger"
    APP_VERSION: str = "0.1.0"
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"

    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8000"))

    # Any SQLAlchemy URL; SQLite by default so a fresh checkout runs
    DATABASE_URL: str = os.getenv(
        "DATABASE_URL",
        "sqlite:///./group_ledger.db"
    )

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # --- Ledger limits ---
    DEFAULT_CURRENCY: str = os.getenv("DEFAULT_CURRENCY", "USD").upper()
    MAX_SPLITS: int = int(os.getenv("MAX_SPLITS", "50"))
    MAX_AMOUNT: Decimal = Decimal(os.getenv("MAX_AMOUNT", "999999.99"))
    MAX_DESCRIPTION_LENGTH: int = 500
    MAX_CATEGORY_LENGTH: int = 100
    MAX_NOTE_LENGTH: int = 1000


@lru_cache()
def get_settings() -> Settings:
    """Return the process-wide Settings instance."""
    return Settings()
