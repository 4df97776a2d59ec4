"""
Market Data Core - Configuration Settings
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator


DEFAULT_DSE_API_URL = "http://localhost:9090"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""
    
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )
    
    # =========================
    # Application Settings
    # =========================
    APP_NAME: str = "Market Data Core"
    APP_ENV: str = "development"
    DEBUG: bool = True
    
    # =========================
    # Data Providers
    # =========================
    # Dar es Salaam Stock Exchange
    ENABLE_DSE_PROVIDER: bool = True
    DSE_API_URL: str = DEFAULT_DSE_API_URL
    DSE_API_KEY: str = ""
    
    @field_validator("DSE_API_URL", mode="before")
    @classmethod
    def normalize_base_url(cls, v):
        if v is None:
            return DEFAULT_DSE_API_URL
        v = str(v).strip().rstrip("/")
        return v or DEFAULT_DSE_API_URL
    
    @field_validator("DSE_API_KEY", mode="before")
    @classmethod
    def strip_api_key(cls, v):
        return str(v).strip() if v is not None else ""
    
    # =========================
    # Routing
    # =========================
    PROVIDER_REQUEST_TIMEOUT: float = 30.0  # seconds, per candidate
    
    # =========================
    # Logging
    # =========================
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = ""


# Create global settings instance
settings = Settings()
