"""
Application configuration management
"""

from decimal import Decimal
from pydantic_settings import BaseSettings
from pydantic import field_validator


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "Memberly"
    APP_VERSION: str = "1.0.0"
    APP_ENV: str = "development"
    DEBUG: bool = False  # Default to production-safe
    SECRET_KEY: str  # Must be provided via environment
    API_PREFIX: str = "/api/v1"

    @field_validator('SECRET_KEY')
    @classmethod
    def validate_secret_key(cls, v: str) -> str:
        if not v or v == "your-secret-key-change-this-in-production":
            raise ValueError("SECRET_KEY must be set to a secure value in production")
        if len(v) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters long")
        return v

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Database
    DATABASE_URL: str  # Must be provided via environment

    @field_validator('DATABASE_URL')
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        if v.startswith('postgresql://'):
            v = v.replace('postgresql://', 'postgresql+asyncpg://', 1)
        return v
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 40
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 3600
    DB_ECHO: bool = False

    # JWT
    JWT_SECRET_KEY: str  # Must be provided via environment
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # Stripe
    STRIPE_SECRET_KEY: str = ""
    STRIPE_WEBHOOK_SECRET: str = ""
    STRIPE_REQUEST_TIMEOUT_SECONDS: float = 10.0
    STRIPE_WEBHOOK_TOLERANCE_SECONDS: int = 300

    # Plans (one block per plan type; ids default to the test-mode catalogue)
    DIGITAL_MEMBER_STRIPE_PRODUCT_ID: str = "prod_SzD5OsVdalKnyu"
    DIGITAL_MEMBER_STRIPE_PRICE_ID: str = "price_1S3EfcEKIaH1izzGZYiN0pBS"
    DIGITAL_MEMBER_PRICE: Decimal = Decimal("522.25")
    DIGITAL_MEMBER_CURRENCY: str = "GBP"

    PHYSICAL_MEMBER_STRIPE_PRODUCT_ID: str = "prod_SzD4NuV0bRJXGJ"
    PHYSICAL_MEMBER_STRIPE_PRICE_ID: str = "price_1S3EedEKIaH1izzGbrWBghLU"
    PHYSICAL_MEMBER_PRICE: Decimal = Decimal("745.32")
    PHYSICAL_MEMBER_CURRENCY: str = "GBP"

    VIP_MEMBER_STRIPE_PRODUCT_ID: str = "prod_SzD48Td9LR0Cpm"
    VIP_MEMBER_STRIPE_PRICE_ID: str = "price_1S3EdvEKIaH1izzGcbtH7NdZ"
    VIP_MEMBER_PRICE: Decimal = Decimal("895.28")
    VIP_MEMBER_CURRENCY: str = "GBP"

    # Seats
    SEAT_HOLD_MINUTES: int = 10

    # Memberships
    MEMBERSHIP_TERM_DAYS: int = 365
    MEMBERSHIP_TIMEZONE: str = "Europe/London"
    MEMBERSHIP_EXPIRY_WARNING_DAYS: int = 7

    # Monitoring
    PROMETHEUS_ENABLED: bool = True
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"

    @property
    def is_testing(self) -> bool:
        return self.APP_ENV == "testing"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


# Create global settings instance
settings = Settings()
