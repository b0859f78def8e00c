# =============================================================================
# HELPDESK API - CONFIGURATION
# =============================================================================
# Settings loaded from environment variables (and .env when present)
# =============================================================================

import os
from typing import List

from dotenv import load_dotenv

load_dotenv()


def _as_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _as_list(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


# =============================================================================
# MAIN SETTINGS
# =============================================================================

class Settings:
    """Global application settings."""

    # Database selector: "postgresql" or "sqlite"
    DB_TYPE: str = os.getenv("DB_TYPE", "postgresql")

    # PostgreSQL
    PG_HOST: str = os.getenv("PG_HOST", "localhost")
    PG_PORT: int = int(os.getenv("PG_PORT", "5432"))
    PG_DATABASE: str = os.getenv("PG_DATABASE", "helpdesk")
    PG_USER: str = os.getenv("PG_USER", "helpdesk")
    PG_PASSWORD: str = os.getenv("PG_PASSWORD", "")
    PG_POOL_MIN: int = int(os.getenv("PG_POOL_MIN", "2"))
    PG_POOL_MAX: int = int(os.getenv("PG_POOL_MAX", "20"))

    # SQLite (development and tests)
    DB_PATH: str = os.getenv("DB_PATH", "helpdesk.db")

    # JWT
    JWT_SECRET_KEY: str = os.getenv("JWT_SECRET_KEY", "HELPDESK_SECRET_KEY_CHANGE_IN_PRODUCTION")
    JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_EXPIRATION_HOURS: int = int(os.getenv("JWT_EXPIRATION_HOURS", "24"))
    AUTH_COOKIE_NAME: str = "token"

    # Bootstrap admin (created at startup when both are set)
    ADMIN_EMAIL: str = os.getenv("ADMIN_EMAIL", "")
    ADMIN_PASSWORD: str = os.getenv("ADMIN_PASSWORD", "")
    ADMIN_NAME: str = os.getenv("ADMIN_NAME", "Administrator")

    # Attachments
    UPLOAD_DIR: str = os.getenv("UPLOAD_DIR", "uploads")
    PUBLIC_BASE_URL: str = os.getenv("PUBLIC_BASE_URL", "http://localhost:8000/uploads")
    MAX_FILE_SIZE: int = int(os.getenv("MAX_FILE_SIZE", str(10 * 1024 * 1024)))  # 10 MB
    ALLOWED_EXTENSIONS: List[str] = _as_list(os.getenv(
        "ALLOWED_EXTENSIONS",
        ".png,.jpg,.jpeg,.gif,.webp,.pdf,.txt,.log,.csv,.doc,.docx,.xls,.xlsx,.zip"
    ))

    # Pagination
    DEFAULT_PAGE_LIMIT: int = int(os.getenv("DEFAULT_PAGE_LIMIT", "10"))
    DEFAULT_MESSAGE_LIMIT: int = int(os.getenv("DEFAULT_MESSAGE_LIMIT", "50"))
    MAX_PAGE_LIMIT: int = int(os.getenv("MAX_PAGE_LIMIT", "100"))

    # AI enrichment (Gemini)
    GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY", "")
    AI_MODEL: str = os.getenv("AI_MODEL", "gemini-1.5-flash")
    AI_ENRICHMENT_ENABLED: bool = _as_bool(os.getenv("AI_ENRICHMENT_ENABLED", "true"))

    # HTTP
    CORS_ORIGINS: List[str] = _as_list(os.getenv("CORS_ORIGINS", "*"))

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Version
    VERSION: str = "1.0.0"
    APP_NAME: str = "Helpdesk API"


# Singleton instance
config = Settings()
