"""
RentLedger Application Configuration
Loads settings from .env file using Pydantic v2 with BaseSettings
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # ==================== Project Info ====================
    PROJECT_NAME: str = "RentLedger API"
    PROJECT_DESCRIPTION: str = "Rent tracking for landlords and tenants"
    VERSION: str = "1.0.0"

    # ==================== Database ====================
    # Supabase Postgres in production, e.g. postgresql+psycopg://...
    DATABASE_URL: str = "sqlite:///rentledger_local.db"
    DATABASE_POOL_SIZE: int = 5
    DATABASE_MAX_OVERFLOW: int = 10
    DATABASE_POOL_RECYCLE: int = 3600

    # ==================== Supabase ====================
    SUPABASE_URL: str = ""
    SUPABASE_KEY: str = ""  # anon key, used for end-user auth calls
    SUPABASE_SERVICE_ROLE_KEY: str = ""  # admin API + storage
    SUPABASE_JWT_SECRET: str = "change-me-supabase-jwt-secret"
    SUPABASE_JWT_AUDIENCE: str = "authenticated"
    JWT_ALGORITHM: str = "HS256"

    # ==================== Storage ====================
    PROOF_BUCKET: str = "payment-proofs"
    MAX_PROOF_SIZE_MB: int = 5
    ALLOWED_PROOF_TYPES: List[str] = [
        "image/jpeg",
        "image/png",
        "image/webp",
        "application/pdf",
    ]

    # ==================== CORS & Frontend ====================
    FRONTEND_URL: str = "http://localhost:3000"
    ALLOWED_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]
    AUTH_COOKIE_NAME: str = "rl_access_token"

    # ==================== Server Configuration ====================
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # ==================== Money ====================
    CURRENCY_SYMBOL: str = "₦"

    # ==================== Pagination ====================
    DEFAULT_PAGE_SIZE: int = 10
    MAX_PAGE_SIZE: int = 100
    TENANT_HISTORY_MAX_PAGE_SIZE: int = 50

    # ==================== Features ====================
    DEBUG: bool = False
    TESTING: bool = False
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="allow",
        validate_default=True,
    )

    @property
    def supabase_configured(self) -> bool:
        return bool(self.SUPABASE_URL and self.SUPABASE_KEY)

    @property
    def max_proof_size_bytes(self) -> int:
        return self.MAX_PROOF_SIZE_MB * 1024 * 1024


# ==================== Settings Singleton ====================
@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()


def is_sqlite() -> bool:
    return settings.DATABASE_URL.lower().startswith("sqlite")
