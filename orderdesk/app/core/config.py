from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import List

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env from repo root if present
ENV_PATH = Path(__file__).resolve().parents[3] / ".env"
if ENV_PATH.exists():
    load_dotenv(dotenv_path=ENV_PATH)


class Settings(BaseSettings):
    """orderdesk settings (loaded from env).

    Pricing and status-transition rules are fixed business constants and live in
    the engines, not here. Only operational knobs are configurable:
      - service identity, logging and CORS
      - size and seed of the in-memory order book
      - paging limits for GET /api/orders
    """

    # --- service ---
    service_name: str = Field(default="orderdesk", description="Service name")
    version: str = Field(default="0.1.0", description="Service version")
    environment: str = Field(default="dev", description="Environment name (dev/staging/prod)")
    host: str = Field(default="0.0.0.0", description="API bind host")
    port: int = Field(default=8000, description="API bind port")

    # Logging
    log_level: str = Field(default="INFO", description="Root log level")
    log_format: str = Field(default="text", description="text|json")

    # --- CORS (dashboard UI) ---
    cors_allow_origins: List[str] = Field(default_factory=lambda: ["*"])
    cors_allow_methods: List[str] = Field(default_factory=lambda: ["*"])
    cors_allow_headers: List[str] = Field(default_factory=lambda: ["*"])

    # --- Order book seed ---
    seed_order_count: int = Field(default=1000, ge=0, description="Mock orders generated at startup")
    seed_random_seed: int = Field(default=42, description="Seed for the mock order generator")

    # --- Paging ---
    page_default_limit: int = Field(default=20, ge=1, description="Default page size for order lists")
    page_max_limit: int = Field(default=100, ge=1, description="Largest page size a client may request")

    # --- Status updates ---
    default_actor: str = Field(
        default="admin",
        description="Recorded as updatedBy when a status change carries no X-Actor header",
    )
    attention_hours: int = Field(
        default=24, ge=0,
        description="Pending orders older than this are flagged as requiring attention",
    )

    # pydantic-settings v2 config
    model_config = SettingsConfigDict(
        env_prefix="ORDERDESK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
