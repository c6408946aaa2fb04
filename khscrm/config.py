# khscrm/config.py

from __future__ import annotations
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional

DEFAULT_ADMIN_PASSWORD = "admin123"

class Settings(BaseSettings):
    # --- Core ---
    APP_NAME: str = "KHS Simple CRM"
    SECRET_KEY: str = Field("change-me", description="JWT signing key")
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(60, ge=5, le=60 * 24)
    REFRESH_TOKEN_EXPIRE_MINUTES: int = Field(60 * 24 * 7, ge=5)
    # Sessions expire this long after login regardless of token refreshes
    SESSION_TTL_MINUTES: int = Field(60 * 12, ge=5)

    # --- Database ---
    DATABASE_URL: str = Field("sqlite:///./crm.db")
    # alembic/env.py reads the same variable (and .env)

    # --- Seed data ---
    SEED_ADMIN_EMAIL: str = "admin@khscrm.com"
    SEED_ADMIN_PASSWORD: str = DEFAULT_ADMIN_PASSWORD
    SEED_DEMO_DATA: bool = False

    # --- HTTP ---
    STATIC_DIR: str = "public"
    CORS_ALLOW_ORIGINS: List[str] = Field(default_factory=lambda: ["*"])

    # --- Logging ---
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    LOG_FILE: Optional[str] = None  # console only when unset

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()
