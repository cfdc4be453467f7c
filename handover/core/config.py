# This project was developed with assistance from AI tools.
"""
Engine configuration.

All settings read from environment variables with sensible local dev defaults.
Group related settings together; each group becomes a section future PRs extend.
"""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve project root .env regardless of CWD
_PROJECT_ROOT = Path(__file__).resolve().parents[2]
_ENV_FILE = _PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    """Engine settings -- single source of truth for env-driven config."""

    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # -- App --
    APP_NAME: str = "handover-engine"
    DEBUG: bool = False

    # -- Console API --
    API_BASE_URL: str = Field(
        default="http://localhost:8000/api",
        description="Base URL of the handover console API (documents, batches).",
    )
    API_TOKEN: str | None = Field(
        default=None,
        description="Bearer token sent with every console API request.",
    )
    HTTP_TIMEOUT_SECONDS: float = Field(
        default=10.0,
        description="Per-request timeout for console API calls.",
    )

    # -- Batch polling --
    POLL_INTERVAL_SECONDS: float = Field(
        default=2.0,
        gt=0,
        description="Delay between batch progress polls while a job is running.",
    )


settings = Settings()
