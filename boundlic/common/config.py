"""
Configuration settings for the license management system.
"""

from __future__ import annotations

import logging
import os


def _env(*names: str, default: str | None = None) -> str | None:
    """Return the first non-empty environment variable among ``names``."""
    for name in names:
        value = os.getenv(name, "").strip()
        if value:
            return value
    return default


def normalize_database_url(url: str) -> str:
    """SQLAlchemy expects postgresql:// not postgres://."""
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql://", 1)
    return url


class Config:
    """Central configuration class for all system settings."""

    def __init__(self) -> None:
        # Service identity
        self.SERVICE_NAME: str = "HASNA License Server"
        self.VERSION: str = "1.0.0"

        # Server settings
        self.ADMIN_KEY: str | None = _env("BOUNDLIC_ADMIN_KEY", "ADMIN_KEY")
        self.SERVER_HOST: str = _env("BOUNDLIC_SERVER_HOST", default="127.0.0.1")
        self.SERVER_PORT: int = int(
            _env("BOUNDLIC_SERVER_PORT", "PORT", default="8000")
        )
        self.SERVER_URL: str = f"http://{self.SERVER_HOST}:{self.SERVER_PORT}"
        self.CORS_ORIGINS: list[str] = [
            origin.strip()
            for origin in _env("BOUNDLIC_CORS_ORIGINS", default="*").split(",")
            if origin.strip()
        ]

        # Storage
        self.DATABASE_URL: str = normalize_database_url(
            _env(
                "BOUNDLIC_DATABASE_URL",
                "DATABASE_URL",
                default="sqlite:///./boundlic.db",
            )
        )

        # License keys
        self.KEY_PREFIX: str = _env("BOUNDLIC_KEY_PREFIX", default="HASNA").upper()
        self.MAX_KEY_ATTEMPTS: int = 5  # Inserts retried on key collision
        self.ACTIVATION_RACE_RETRIES: int = 3  # Re-reads after a lost bind

        # Messages returned to callers: "fr" or "en"
        self.LOCALE: str = _env("BOUNDLIC_LOCALE", default="fr").lower()

        # Activation log retention; None keeps every entry
        retention = _env("BOUNDLIC_AUDIT_RETENTION_DAYS")
        self.AUDIT_RETENTION_DAYS: int | None = (
            int(retention) if retention is not None else None
        )

        # Logging
        level_name = _env("BOUNDLIC_LOG_LEVEL", default="INFO").upper()
        self.LOG_LEVEL: int = logging.getLevelName(level_name)
        if not isinstance(self.LOG_LEVEL, int):
            self.LOG_LEVEL = logging.INFO
