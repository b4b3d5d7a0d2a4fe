from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List

class Settings(BaseSettings):
    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # API Settings
    PROJECT_NAME: str = "Spend Share API"
    API_V1_STR: str = "/api/v1"
    PROJECT_VERSION: str = "0.1.0"
    DESCRIPTION: str = "Shared expenses, group splits and debt settlement"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # MongoDB
    MONGODB_URL: str = "mongodb://localhost:27017"
    DATABASE_NAME: str = "spendshare"

    # Transactions are retried as a whole on transient storage failures
    TRANSACTION_MAX_ATTEMPTS: int = 3
    TRANSACTION_RETRY_BACKOFF_SECONDS: float = 0.05

    # CORS
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:8081"]

    # JWT
    SECRET_KEY: str = "change-this-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    # Ledger
    REQUIRE_FRIENDSHIP_FOR_SPLITS: bool = True
    EXPENSE_CATEGORIES: List[str] = ["Food", "Miscellaneous", "Studies", "Outing"]

    # Analytics
    ANALYTICS_TIMEZONE: str = "UTC"
    CATEGORY_BREAKDOWN_DAYS: int = 28

    model_config = SettingsConfigDict(
        case_sensitive=True,
        env_file=".env"
    )

settings = Settings()
