"""
Configuration settings for the GlobalCVE aggregator
"""
from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings"""

    # Application
    APP_NAME: str = "GlobalCVE API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    API_PREFIX: str = "/api"

    # CORS
    CORS_ORIGINS: list = ["http://localhost:3000", "http://localhost:5173"]

    # Rate Limiting
    RATE_LIMIT_PER_MINUTE: int = 60

    # Fan-out
    ADAPTER_TIMEOUT_SECONDS: float = 25.0  # Per adapter, including all of its sub-requests
    HTTP_TIMEOUT_SECONDS: float = 15.0     # Per outbound HTTP request
    USER_AGENT: str = "GlobalCVE/1.0 (+https://github.com/globalcve/globalcve)"
    DISABLED_SOURCES: List[str] = []

    # Source credentials and tuning
    NVD_API_KEY: Optional[str] = None
    NVD_PAGES: int = 5
    GITHUB_TOKEN: Optional[str] = None
    SURFACE_KEV_RECORDS: bool = False
    ANDROID_BULLETIN_MONTHS: int = 12
    APPLE_MAX_ITEMS: int = 20

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
