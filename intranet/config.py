"""
Configuration management using Pydantic Settings
"""
from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Database
    DATABASE_URL: str

    # Gemini API
    GEMINI_API_KEY: str
    GEMINI_MODEL: str = "gemini-2.0-flash"

    # Redis (empty string disables caching)
    REDIS_URL: str = "redis://redis:6379/0"

    # Application
    APP_NAME: str = "Cresci e Perdi Intranet"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ALLOWED_ORIGINS: List[str] = ["http://localhost:5173", "http://localhost:8000"]

    # Rate limiting for AI-backed endpoints
    AI_RATE_LIMIT_PER_MINUTE: int = 10
    AI_RATE_LIMIT_PER_HOUR: int = 200

    # Mandatory content
    COMPLIANCE_CACHE_TTL: int = 300  # 5 minutes
    MANDATORY_CONTENT_BLOCK_ACCESS_DEFAULT: bool = True
    MANDATORY_CONTENT_MAX_REMINDERS: int = 5
    SCROLL_END_TOLERANCE_PX: int = 10
    CONFIRMATION_REDIRECT_DELAY_SECONDS: int = 2
    IP_LOOKUP_URL: str = "https://api.ipify.org?format=json"

    # Outbound HTTP
    HTTP_TIMEOUT_SECONDS: float = 10.0

    # WhatsApp (Z-API)
    ZAPI_INSTANCE_ID: str = ""
    ZAPI_TOKEN: str = ""
    ZAPI_CLIENT_TOKEN: str = ""
    ZAPI_BASE_URL: str = "https://api.z-api.io"
    NOTIFICATION_MAX_BATCH: int = 50
    WHATSAPP_SEND_INTERVAL_SECONDS: float = 1.0

    # Logging
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = True


# Global settings instance
settings = Settings()
