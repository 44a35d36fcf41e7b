"""
SnipKeep Backend — Application Configuration
=============================================

What:  Centralized configuration management using Pydantic Settings.
How:   Pydantic Settings reads from environment variables (or a .env file),
       validates types/ranges, and provides a singleton `settings` object.
Who:   Imported by the app factory and the request dependencies.
When:  Loaded once at module import time; tests build their own instances
       and hand them to `create_app(settings=...)`.
"""

from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have defaults suitable for local development.
    Attributes are grouped by concern.
    """

    # ── Storage ───────────────────────────────────────────────────────────
    # Directory holding users.json and snippets.json
    data_dir: str = Field(default="./data")

    # ── Sessions ──────────────────────────────────────────────────────────
    # Fixed lifetime of a login session, counted from issuance
    session_ttl_seconds: int = Field(default=3600, ge=60, le=86400)
    session_cookie_name: str = Field(default="snipkeep_session")
    session_cookie_secure: bool = Field(default=False)

    # ── Passwords ─────────────────────────────────────────────────────────
    # Comma-separated passlib scheme names; the first one hashes new passwords
    password_schemes: str = Field(default="pbkdf2_sha256")

    @property
    def password_schemes_list(self) -> List[str]:
        return [s.strip() for s in self.password_schemes.split(",") if s.strip()]

    # ── CORS ──────────────────────────────────────────────────────────────
    # Comma-separated origins allowed to send credentialed requests
    cors_origins: str = Field(default="http://localhost:3000")

    @property
    def cors_origins_list(self) -> List[str]:
        """Splits comma-separated CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    # ── Server ────────────────────────────────────────────────────────────
    backend_host: str = Field(default="0.0.0.0")
    backend_port: int = Field(default=3000, ge=1024, le=65535)

    # Valid: DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    # ── Rate Limiting ─────────────────────────────────────────────────────
    # Per-IP sliding window
    rate_limit_requests: int = Field(default=300, ge=10, le=10000)
    rate_limit_window: int = Field(default=60, ge=1, le=86400)  # seconds

    # ── Pydantic Settings Config ──────────────────────────────────────────
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }


# Singleton instance used when no explicit Settings are passed to create_app()
settings = Settings()
