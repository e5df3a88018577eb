"""Configuration management for the feedback service."""
import os
from typing import Optional
from dotenv import load_dotenv

load_dotenv()


def _optional_float(name: str) -> Optional[float]:
    value = os.getenv(name, "").strip()
    return float(value) if value else None


class Config:
    """Application configuration."""

    # OpenAI Configuration
    OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
    AI_MODEL = os.getenv("AI_MODEL", "gpt-4o-mini")
    AI_PROVIDER_ENABLED = os.getenv("AI_PROVIDER_ENABLED", "true").lower() == "true"
    # No timeout unless one is configured
    AI_TIMEOUT_SECONDS = _optional_float("AI_TIMEOUT_SECONDS")

    # Failed analyses become the neutral fallback (true) or the "error" status (false)
    MASK_ANALYSIS_ERRORS = os.getenv("MASK_ANALYSIS_ERRORS", "true").lower() == "true"

    # Application state
    NOTIFICATION_TTL_SECONDS = float(os.getenv("NOTIFICATION_TTL_SECONDS", "5"))
    SEED_EXAMPLE_DATA = os.getenv("SEED_EXAMPLE_DATA", "true").lower() == "true"

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

    # Rating bounds (stars)
    MIN_RATING = 1
    MAX_RATING = 5

    # Dashboard
    TOP_THEMES_LIMIT = 5


config = Config()
