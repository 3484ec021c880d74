"""Application configuration via Pydantic Settings."""

from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Global application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
    )

    # App
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Browser
    HEADLESS: bool = True
    BLOCK_RESOURCES: bool = True
    # Comma-separated extra Chromium flags appended to the defaults
    BROWSER_ARGS: str = ""
    LAUNCH_RETRIES: int = 3

    # Search
    NAVIGATION_RETRIES: int = 2
    SEARCH_TIMEOUT_SECONDS: float = 90.0
    # Substitute the diagnostic listing when an adapter raises
    DEGRADE_ON_ERROR: bool = True

    def get_browser_args(self) -> List[str]:
        """Parse BROWSER_ARGS into a list of Chromium flags.

        Returns:
            List of flag strings, empty if BROWSER_ARGS is not set
        """
        if not self.BROWSER_ARGS:
            return []
        return [a.strip() for a in self.BROWSER_ARGS.split(",") if a.strip()]


settings = Settings()
