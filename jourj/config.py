"""
Configuration management for Jour J
"""
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "Jour J"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # Database
    DATABASE_URL: str = "sqlite:///./jourj.db"

    # Security
    SECRET_KEY: str = "dev-secret-key-change-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24  # 24 hours

    # Event data store
    REFRESH_INTERVAL_SECONDS: int = 30  # 0 disables the background refresh
    MAX_NOTICES: int = 20

    # File storage
    UPLOAD_DIR: str = "uploads/documents"
    MAX_UPLOAD_SIZE: int = 50 * 1024 * 1024  # 50 MB
    PUBLIC_BASE_URL: str = "http://localhost:8000"

    # CORS
    CORS_ORIGINS: list[str] = ["http://localhost:5173", "http://localhost:3000", "http://127.0.0.1:5173"]

    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    return Settings()
