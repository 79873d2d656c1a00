"""
Application settings and configuration
"""
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings from environment variables"""

    APP_NAME: str = Field(default="Barbershop Booking API")
    DEBUG: bool = Field(default=False)

    # Database settings
    DATABASE_URL: str = Field(default="sqlite:///./barbershop.db")
    DB_ECHO: bool = Field(default=False)

    # Business clock
    BUSINESS_TIMEZONE: str = Field(default="America/Sao_Paulo")
    SLOT_GRANULARITY_MINUTES: int = Field(default=30, gt=0)

    # JWT Authentication settings
    JWT_SECRET_KEY: str = Field(default="change-me-later")
    JWT_ALGORITHM: str = Field(default="HS256")
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(default=30)

    # Monitoring settings
    LOG_LEVEL: str = Field(default="INFO")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
