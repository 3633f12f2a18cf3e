"""Configuration management using Pydantic Settings"""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    database_url: str = "sqlite:///./dealer_gateway.db"

    # Service
    service_name: str = "dealer-gateway"
    log_level: str = "INFO"

    # Shared secret for X-API-Key; unset disables the check
    api_key: Optional[str] = None

    # Presentation
    currency_suffix: str = "MXN"

    # Lead scoring
    flagship_financing_type: str = "Yamaha Especial"
    stale_lead_days: int = 30


settings = Settings()
