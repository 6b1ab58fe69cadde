"""
Application configuration using Pydantic Settings
"""
from functools import lru_cache
from zoneinfo import ZoneInfo

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables
    """
    # REST backend
    API_URL: str = "http://localhost:5000/api"
    API_TOKEN: str = ""
    REQUEST_TIMEOUT: float = 10.0

    # Sync
    REFRESH_DEBOUNCE_MS: int = 300

    # Application
    TIMEZONE: str = "Europe/Moscow"
    DEBUG: bool = False

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    def get_timezone(self) -> ZoneInfo:
        """
        Timezone used to turn server timestamps into local day keys
        """
        return ZoneInfo(self.TIMEZONE)

    def refresh_delay_seconds(self) -> float:
        return self.REFRESH_DEBOUNCE_MS / 1000


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings instance (singleton)
    """
    return Settings()
