from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from pathlib import Path
from typing import List

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file='.env', env_file_encoding='utf-8', extra='ignore')

    # System
    LOG_LEVEL: str = "INFO"
    DATA_DIR: Path = Path("./data")

    # API
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 5000
    CORS_ORIGINS: List[str] = Field(default_factory=lambda: ["*"])

    # MongoDB store
    MONGODB_URI: str = "mongodb://localhost:27017"
    MONGODB_DB_NAME: str = "feedhub"
    MONGODB_COLLECTION: str = "news"

    # WordPress upstream
    WP_API: str = "https://public-api.wordpress.com/wp/v2/sites/firstproduc.wordpress.com"
    WP_PER_PAGE: int = 100
    WP_TIMEOUT: float = 10.0
    WP_CACHE_TTL_SECONDS: float = 300.0  # 5 minutes
    WP_MAX_RETRIES: int = 3

    # Scraper / scheduler
    SCRAPE_CRON: str = "0 */6 * * *"
    SCRAPE_INTERVAL_SECONDS: float | None = None  # Overrides SCRAPE_CRON when set
    SCRAPE_INITIAL_DELAY: float = 10.0
    SCRAPE_TIMEOUT: float = 10.0
    SCRAPE_KEY: str | None = None
    SCHEDULER_ENABLED: bool = True

    # Content
    SEED_NEWS_ENABLED: bool = True
    PAGE_LIMIT_DEFAULT: int = 10
    PAGE_LIMIT_MAX: int = 100

    def ensure_dirs(self):
        self.DATA_DIR.mkdir(parents=True, exist_ok=True)

settings = Settings()
