"""Project configuration and paths.

Loads settings from config/settings.yaml and environment variables.
Secrets (Supabase service key, StockX API key) only come from the
environment or .env, never from the YAML file.
"""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

# === Paths ===
PROJECT_ROOT = Path(__file__).parent.parent.parent
CONFIG_DIR = PROJECT_ROOT / "config"

# Load .env from project root
load_dotenv(PROJECT_ROOT / ".env")

# === Supabase tables ===
SALES_TABLE = "pending_costs"
LINKS_TABLE = "cross_list_links"
DELIST_LOG_TABLE = "delist_log"
LOCKS_TABLE = "auto_delist_locks"
TOKENS_TABLE = "user_tokens"

# Scopes granted at account linking; a refresh may not ask for more
EBAY_OAUTH_SCOPES = (
    "https://api.ebay.com/oauth/api_scope",
    "https://api.ebay.com/oauth/api_scope/sell.fulfillment.readonly",
    "https://api.ebay.com/oauth/api_scope/sell.fulfillment",
    "https://api.ebay.com/oauth/api_scope/sell.finances",
    "https://api.ebay.com/oauth/api_scope/sell.inventory.readonly",
    "https://api.ebay.com/oauth/api_scope/sell.inventory",
)


def _env(*names: str, default: str = "") -> str:
    """First non-empty environment variable among names."""
    for name in names:
        value = os.getenv(name, "")
        if value:
            return value
    return default


class SupabaseSettings(BaseModel):
    """Supabase project connection (service role, bypasses RLS)."""
    url: str = Field(
        default_factory=lambda: _env("SUPABASE_URL", "NEXT_PUBLIC_SUPABASE_URL")
    )
    service_key: str = Field(
        default_factory=lambda: _env("SUPABASE_SERVICE_ROLE_KEY", "SUPABASE_SERVICE_KEY")
    )


class MarketplaceSettings(BaseModel):
    """Endpoints and transport settings for the marketplace APIs."""
    ebay_api_base: str = "https://api.ebay.com"
    ebay_marketplace_id: str = "EBAY_US"
    ebay_content_language: str = "en-US"
    stockx_api_base: str = "https://api.stockx.com"
    stockx_api_key: str = Field(default_factory=lambda: _env("STOCKX_API_KEY"))
    # OAuth refresh grants for expired access tokens
    ebay_oauth_url: str = "https://api.ebay.com/identity/v1/oauth2/token"
    ebay_oauth_scopes: list[str] = Field(default_factory=lambda: list(EBAY_OAUTH_SCOPES))
    ebay_client_id: str = Field(default_factory=lambda: _env("EBAY_CLIENT_ID"))
    ebay_client_secret: str = Field(default_factory=lambda: _env("EBAY_CLIENT_SECRET"))
    stockx_oauth_url: str = "https://accounts.stockx.com/oauth/token"
    stockx_client_id: str = Field(default_factory=lambda: _env("STOCKX_CLIENT_ID"))
    stockx_client_secret: str = Field(default_factory=lambda: _env("STOCKX_CLIENT_SECRET"))
    request_timeout: float = 30.0
    max_retries: int = 3
    rate_limit_rpm: int = 120


class DelistSettings(BaseModel):
    """Behaviour of the automatic delist pipeline."""
    lock_duration_minutes: int = 10
    lock_holder_prefix: str = "cron"
    history_default_limit: int = 50
    history_max_limit: int = 200
    token_expiry_buffer_minutes: int = 5
    # Leave failed delists unprocessed so the next scheduled run retries them
    retry_failed: bool = False


class Settings(BaseModel):
    """Top-level application settings."""
    supabase: SupabaseSettings = Field(default_factory=SupabaseSettings)
    marketplaces: MarketplaceSettings = Field(default_factory=MarketplaceSettings)
    delist: DelistSettings = Field(default_factory=DelistSettings)

    @classmethod
    def load(cls, path: Path | None = None) -> Settings:
        """Load settings from config/settings.yaml, falling back to defaults."""
        settings_path = path or CONFIG_DIR / "settings.yaml"
        if settings_path.exists():
            with open(settings_path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
            return cls(**data)
        return cls()


# Singleton settings instance
settings = Settings.load()
