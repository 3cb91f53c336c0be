from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional

class Settings(BaseSettings):
    # Basic settings
    PROJECT_NAME: str = "Social Network API"
    VERSION: str = "1.0.0"
    API_V1_STR: str = "/api/v1"

    # Database settings
    DATABASE_URL: str = "sqlite:///./social_network.db"

    # Security settings
    SECRET_KEY: str = "change-me-in-production"  # Override through the environment in production
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 120
    BCRYPT_ROUNDS: int = 12

    # Identifier allocation
    USER_ID_ALLOCATION_RETRIES: int = 5

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = None

    # Background tasks
    CELERY_BROKER_URL: str = "pyamqp://guest@localhost//"
    GRAPH_RECONCILE_INTERVAL_SECONDS: int = 3600

    class Config:
        case_sensitive = True
        env_file = ".env"

@lru_cache()
def get_settings() -> Settings:
    return Settings()
