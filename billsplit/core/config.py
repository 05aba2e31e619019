"""Application configuration settings."""

import os
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


def _get_default_database_url() -> str:
    """Get the default database URL, using Fly Volume path if available."""
    if os.path.isdir("/data"):
        return "sqlite:////data/billsplit.db"
    return "sqlite:///./billsplit.db"


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
    )

    PROJECT_NAME: str = "BillSplit"
    VERSION: str = "0.1.0"
    DEBUG: bool = True
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    LOG_LEVEL: str = "INFO"

    # Storage - "memory" keeps records for the lifetime of the process only
    STORAGE_BACKEND: Literal["memory", "sql"] = "memory"
    DATABASE_URL: str = _get_default_database_url()

    # Signs the session cookie used for flash messages
    SECRET_KEY: str = "your-secret-key-change-this-in-production"

    # Uploads
    UPLOAD_DIR: str = "uploads"
    MAX_UPLOAD_SIZE: int = 5 * 1024 * 1024
    ALLOWED_IMAGE_TYPES: list[str] = ["image/jpeg", "image/jpg", "image/png"]

    # Calculator form defaults
    TENANTS: list[str] = ["ABCD", "XYZ", "OKBD"]
    CURRENCY_SYMBOL: str = "₹"
    DEFAULT_PERIOD_MONTHS: int = 2


settings = Settings()
