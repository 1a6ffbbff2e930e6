from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Centralized application settings loaded from environment.

    Env vars (.env):
      - DATABASE_URL (durable cart storage, SQLite file by default)
      - BACKEND_API_URL (Ayurvedic marketplace REST API)
      - JWT_SECRET (shared with the marketplace; used to read bearer claims)

    Optional:
      - CART_STORAGE_KEY (storage key holding the serialized cart)
      - PLACEHOLDER_IMAGE_URL (shown when a product has no image)
    """

    PROJECT_NAME: str = "Ayurvedic Storefront"
    API_V1_STR: str = "/api/v1"

    # Durable key-value storage
    DATABASE_URL: str = "sqlite:///./storefront.db"
    CART_STORAGE_KEY: str = "ayurvedicCart"

    # Marketplace REST API
    BACKEND_API_URL: str = "http://localhost:5000"
    BACKEND_TIMEOUT_SECONDS: float = 10.0

    # Bearer token verification
    JWT_SECRET: str = "change-me"
    JWT_ALG: str = "HS256"

    PLACEHOLDER_IMAGE_URL: str = "https://via.placeholder.com/300x200?text=No+Image"

    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings loader.
    Ensures we don't re-parse .env on every import / request.
    """
    return Settings()
