from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Global application settings with environment variable support."""

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "scraper.log"  # Empty string disables the file handler

    # Timezone used for normalized start times
    TIMEZONE: str = "Europe/Sofia"

    # Proxy
    PROXY_ENABLED: bool = False
    PROXY_SERVER: str = ""
    PROXY_PORT: int = 0
    PROXY_USERNAME: str = ""
    PROXY_PASSWORD: str = ""

    # Browser bootstrap
    BROWSER_MAX_RETRIES: int = 3
    BROWSER_RETRY_DELAY: float = 5.0  # seconds
    BROWSER_SLOW_MO: int = 100  # ms between browser actions
    BROWSER_HEADLESS: bool = True

    # Page protocol (milliseconds)
    SETTLE_DELAY_MS: int = 5000
    COOKIE_BANNER_TIMEOUT_MS: int = 5000
    NAVIGATION_TIMEOUT_MS: int = 30000

    # Results
    DEDUPLICATE_EVENTS: bool = False
    OUTPUT_ENABLED: bool = False
    OUTPUT_DIR: str = "scraper-output"

    # Runner
    SCRAPE_INTERVAL: float = 45.0  # seconds
    MATCH_ID: str = ""

    # Betano
    BETANO_URL: str = "https://www.betano.bg"
    BETANO_ENDPOINTS: List[str] = []  # Empty list captures every JSON API call
    BETANO_LOOKUP_URL: str = "https://www.betano.bg/api/events/{match_id}"

    # Efbet
    EFBET_URL: str = "https://www.efbet.com/bg/sports"
    EFBET_ENDPOINTS: List[str] = ["offer"]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


# Global settings instance
settings = Settings()
