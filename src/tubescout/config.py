"""Configuration management for tubescout."""

from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings with environment variable overrides.

    All settings can be overridden via environment variables
    prefixed with TUBESCOUT_ (e.g. TUBESCOUT_DATA_DIR, TUBESCOUT_PORT).
    The Data API key is also read from the conventional YOUTUBE_API_KEY.
    """

    model_config = {"env_prefix": "TUBESCOUT_", "populate_by_name": True}

    # Storage
    data_dir: Path = Field(
        default_factory=lambda: Path.home() / ".tubescout",
        description="Root directory for all tubescout data",
    )

    # Server
    host: str = "127.0.0.1"
    port: int = 9094

    # Upstream
    youtube_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("TUBESCOUT_YOUTUBE_API_KEY", "YOUTUBE_API_KEY"),
        description="YouTube Data API v3 key; optional for single videos",
    )
    http_timeout: float = 30.0

    # Channel paging
    page_size: int = Field(default=50, ge=1, le=50, description="Video IDs per details lookup")
    max_channel_pages: int = 200
    request_delay: float = 0.1  # seconds between paged upstream calls

    # Rate limiting (per caller)
    extract_rate_limit: int = 10
    history_rate_limit: int = 20
    rate_limit_window: int = 60
    rate_limit_max_callers: int = 500

    @property
    def db_path(self) -> Path:
        """SQLite database path for saved analyses."""
        return self.data_dir / "tubescout.db"

    def ensure_dirs(self) -> None:
        """Create all required directories if they don't exist."""
        self.data_dir.mkdir(parents=True, exist_ok=True)


# Module-level singleton; import this throughout the app
settings = Settings()
