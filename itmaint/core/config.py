"""
IT Maintenance Application Configuration
Loads settings from .env file using Pydantic v2 with BaseSettings
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # ==================== Project Info ====================
    PROJECT_NAME: str = "IT Maintenance API"
    PROJECT_DESCRIPTION: str = "IT equipment inventory and preventive maintenance planning"
    VERSION: str = "1.0.0"

    # ==================== Database ====================
    DATABASE_URL: str = "sqlite:///./itmaint.db"
    DATABASE_POOL_RECYCLE: int = 3600

    # ==================== Security & Authentication ====================
    SECRET_KEY: str = "change-this-secret-key-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 480  # 8 hours

    # ==================== Default Administrator ====================
    DEFAULT_ADMIN_USERNAME: str = "admin"
    DEFAULT_ADMIN_PASSWORD: str = "admin123"
    DEFAULT_ADMIN_EMAIL: str = "admin@maintenance.local"

    # ==================== CORS ====================
    ALLOWED_ORIGINS: List[str] = ["*"]

    # ==================== Server Configuration ====================
    HOST: str = "0.0.0.0"
    PORT: int = 3001

    # ==================== Email Configuration ====================
    SMTP_HOST: str = ""
    SMTP_PORT: int = 587
    SMTP_USER: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_TIMEOUT: int = 30
    EMAIL_FROM: str = "Maintenance <noreply@maintenance.local>"

    # ==================== Preventive Maintenance ====================
    ALERT_DAYS_BEFORE: int = 7
    UPCOMING_DAYS: int = 7
    SCHEDULER_ENABLED: bool = True
    RECONCILE_HOUR: int = 0
    ALERT_HOUR: int = 8
    DISPATCH_INTERVAL_SECONDS: int = 3600
    DISPATCH_STARTUP_DELAY_SECONDS: int = 5

    # ==================== Features ====================
    DEBUG: bool = False
    TESTING: bool = False
    LOG_LEVEL: str = "INFO"

    # ==================== Configuration Loading ====================
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="allow",  # Allow extra environment variables
        validate_default=True,
    )

    # ==================== Properties ====================
    @property
    def email_configured(self) -> bool:
        """Check if the SMTP transport can be built"""
        return bool(self.SMTP_HOST and self.SMTP_USER)

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")


# ==================== Settings Singleton ====================
@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


# Create default settings instance
settings = get_settings()


# ==================== Helper Functions ====================
def get_cors_origins() -> List[str]:
    """Get CORS allowed origins"""
    return settings.ALLOWED_ORIGINS