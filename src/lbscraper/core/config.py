"""Application settings for the leaderboard scraper."""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-driven configuration values."""

    model_config = SettingsConfigDict(
        env_prefix="LBSCRAPER_",
        env_file=".env",
        case_sensitive=False,
    )

    game: str = Field(
        default="Portal2",
        description="Steam community game identifier whose leaderboards are scraped.",
    )
    steam_base_url: str = Field(
        default="https://steamcommunity.com",
        description="Base URL of the Steam community stats service.",
    )
    output_dir: Path = Field(
        default=Path("leaderboards"),
        description="Directory holding one histogram JSON file per leaderboard.",
    )
    request_timeout: float = Field(default=30.0, gt=0)
    log_level: str = Field(default="INFO")
    schedule_enabled: bool = Field(
        default=False,
        description="Resume every leaderboard's aggregation on a daily cron schedule.",
    )
    schedule_hour: int = Field(default=3, ge=0, le=23)
    schedule_minute: int = Field(default=0, ge=0, le=59)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""

    return Settings()
