from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables or a .env file."""
    APP_NAME: str = "Product Inventory Manager"
    LOG_LEVEL: str = "INFO"

    # Persistence
    STORAGE_BACKEND: str = "database"  # database | redis | memory
    STORAGE_KEY: str = "products"
    DATABASE_URL: str = "sqlite:///./inventory.db"
    REDIS_URL: str = "redis://localhost:6379/0"

    # Store behaviour
    DEFAULT_PAGE_SIZE: int = 5
    SEED_DEMO_PRODUCTS: bool = False

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    return Settings()
