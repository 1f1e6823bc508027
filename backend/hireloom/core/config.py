"""
Runtime configuration.

Values come from the environment, with a local .env file loaded first.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv


DEFAULT_MODEL = "llama-3.3-70b-versatile"


@dataclass(frozen=True)
class Settings:
    """Application settings resolved from environment variables."""
    groq_api_key: Optional[str] = None
    groq_model: str = DEFAULT_MODEL
    app_base_url: str = "http://localhost:3000"
    email_api_url: Optional[str] = None  # When set, invitations go through HTTP
    email_user: str = ""
    email_pass: str = ""
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    email_from_name: str = "Hireloom Hiring Team"
    cors_origins: List[str] = field(
        default_factory=lambda: ["http://localhost:5173", "http://localhost:3000"]
    )
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()
        origins = os.getenv("CORS_ORIGINS")
        return cls(
            groq_api_key=os.getenv("GROQ_API_KEY") or None,
            groq_model=os.getenv("GROQ_MODEL", DEFAULT_MODEL),
            app_base_url=os.getenv("APP_BASE_URL", "http://localhost:3000").rstrip("/"),
            email_api_url=os.getenv("EMAIL_API_URL") or None,
            email_user=os.getenv("EMAIL_USER", ""),
            email_pass=os.getenv("EMAIL_PASS", ""),
            smtp_host=os.getenv("SMTP_HOST", "smtp.gmail.com"),
            smtp_port=int(os.getenv("SMTP_PORT", "587")),
            email_from_name=os.getenv("EMAIL_FROM_NAME", "Hireloom Hiring Team"),
            cors_origins=(
                [o.strip() for o in origins.split(",") if o.strip()]
                if origins
                else ["http://localhost:5173", "http://localhost:3000"]
            ),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Return the process-wide settings, loading them on first use."""
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings


def configure_logging(level: Optional[str] = None) -> None:
    """Set up root logging for the API process."""
    logging.basicConfig(
        level=level or get_settings().log_level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
