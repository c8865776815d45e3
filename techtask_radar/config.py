from functools import lru_cache
from typing import List, Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

from techtask_radar.errors import ConfigurationError


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Listing
    list_url: str = "https://astanahub.com/ru/tech_task/"
    base_url: str = "https://astanahub.com"

    # Crawler
    max_scroll_rounds: int = 60
    wait_between_scroll_ms: int = 1200
    idle_after_no_growth_rounds: int = 3
    newest_first: bool = True
    navigation_timeout_ms: int = 30000
    headless: bool = True

    # Telegram
    telegram_bot_token: str = ""
    telegram_channel_id: str = ""  # e.g. "@my_channel" or "-1001234567890"
    delivery_pacing_ms: int = 800

    # Seen-link storage
    storage_backend: Literal["netlify", "database"] = "netlify"
    netlify_site_id: str = ""
    netlify_api_token: str = ""
    seen_store_name: str = "techtasks-seen"
    seen_key: str = "seen.json"
    database_url: str = "sqlite:///./data/techtasks.db"

    # Scheduler
    schedule_interval_minutes: int = 30
    scheduler_enabled: bool = False

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    debug: bool = False

    def missing_required(self) -> List[str]:
        required = {
            "TELEGRAM_BOT_TOKEN": self.telegram_bot_token,
            "TELEGRAM_CHANNEL_ID": self.telegram_channel_id,
        }
        if self.storage_backend == "netlify":
            required["NETLIFY_SITE_ID"] = self.netlify_site_id
            required["NETLIFY_API_TOKEN"] = self.netlify_api_token
        return [name for name, value in required.items() if not value]

    def ensure_complete(self) -> None:
        """Raise ConfigurationError if any required secret is missing."""
        missing = self.missing_required()
        if missing:
            raise ConfigurationError(f"Missing {', '.join(missing)}")


@lru_cache
def get_settings() -> Settings:
    return Settings()
