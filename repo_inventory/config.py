"""
Application configuration
"""
from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings"""

    # Logging ("text" or "json")
    LOG_FORMAT: str = "text"

    # Database (MongoDB)
    MONGODB_URI: str = "mongodb://localhost:27017"
    MONGODB_DB_NAME: str = "repo_inventory"
    INVENTORY_COLLECTION: str = "repo_inventory"

    # GitHub
    GITHUB_TOKEN: Optional[str] = None
    GITHUB_API_URL: str = "https://api.github.com"
    GITHUB_ORG: Optional[str] = None
    GITHUB_TEAM_SLUG: Optional[str] = None
    GITHUB_REQUEST_TIMEOUT: float = 30.0
    GITHUB_MAX_RETRIES: int = 3
    GITHUB_RETRY_DELAY_SECONDS: float = 1.0

    # Scanning
    SCAN_BATCH_SIZE: int = 10
    SCAN_PREFETCH_WORKERS: int = 8
    LANGUAGE_THRESHOLD_PERCENT: int = 20
    CONTRIBUTORS_LIMIT: int = 10

    # Redis / Celery
    CELERY_BROKER_URL: str = "redis://localhost:6379/1"
    CELERY_RESULT_BACKEND: str = "redis://localhost:6379/2"
    SCAN_QUEUE: str = "inventory_scan"

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


settings = Settings()
