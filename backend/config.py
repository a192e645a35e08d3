"""
Configuration management for the COD Storefront order backend.

Loads settings from .env via pydantic-settings.

Security notes:
    - Turnstile secret is required in production (bot verification fails closed)
    - validate_production_settings() enforces strict CORS in production
    - Ad platform credentials are optional; missing ones disable that platform
"""
import logging

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # ── Database ────────────────────────────────────────────────────
    database_url: str = "sqlite:///./data/storefront.db"
    db_timeout_seconds: float = 5.0     # SQLite busy timeout

    # ── Cloudflare Turnstile (bot verification) ─────────────────────
    turnstile_secret_key: str = ""
    turnstile_verify_url: str = "https://challenges.cloudflare.com/turnstile/v0/siteverify"
    bot_verification_timeout_seconds: float = 5.0

    # ── Meta Conversions API ────────────────────────────────────────
    meta_pixel_id: str = ""
    meta_access_token: str = ""
    meta_api_version: str = "v18.0"

    # ── TikTok Events API ───────────────────────────────────────────
    tiktok_pixel_id: str = ""
    tiktok_access_token: str = ""

    # ── Tracking ────────────────────────────────────────────────────
    tracking_timeout_seconds: float = 3.0
    tracking_events_per_minute: int = 60    # public /tracking/events throttle per IP

    # ── Locale ──────────────────────────────────────────────────────
    country_calling_code: str = "213"   # Algeria
    currency: str = "DZD"

    # ── Abuse controls ──────────────────────────────────────────────
    order_ip_limit_per_hour: int = 10
    order_phone_limit_per_hour: int = 3
    rate_limit_window_minutes: int = 60
    duplicate_window_minutes: int = 5

    # ── Application ─────────────────────────────────────────────────
    environment: str = "development"

    # ── CORS ────────────────────────────────────────────────────────
    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000,http://localhost:5173,http://127.0.0.1:5173"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # allow unknown .env keys without crashing
    )

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def meta_configured(self) -> bool:
        return bool(self.meta_pixel_id and self.meta_access_token)

    @property
    def tiktok_configured(self) -> bool:
        return bool(self.tiktok_pixel_id and self.tiktok_access_token)

    def validate_production_settings(self):
        """
        Validate settings for production safety.

        Called during app startup.
        """
        if self.environment == "production":
            if "*" in self.cors_origins:
                raise ValueError(
                    "CORS_ORIGINS must not contain '*' in production. "
                    "Set explicit allowed origins."
                )
            if not self.turnstile_secret_key:
                raise ValueError(
                    "TURNSTILE_SECRET_KEY must be set in production. "
                    "Without it every checkout is rejected by bot verification."
                )
            logger.info("Production settings validated")
        else:
            warnings = []
            if not self.turnstile_secret_key:
                warnings.append("TURNSTILE_SECRET_KEY not set (all checkouts will fail verification)")
            if "*" in self.cors_origins:
                warnings.append("CORS_ORIGINS contains '*' (open access)")
            if not self.meta_configured and not self.tiktok_configured:
                warnings.append("No ad platform credentials set (server-side tracking disabled)")
            for w in warnings:
                logger.warning(f"⚠️  {w}")


# Global settings instance
settings = Settings()
