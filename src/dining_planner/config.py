"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")
_PLACEHOLDER_SECRETS = {"", "your-openai-api-key-here", "your-resend-api-key-here"}


class ConfigurationError(RuntimeError):
    """Raised when an external service is used without its credentials."""


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    admin_token: str
    openai_api_key: str | None = None
    openai_model: str = "gpt-5.2"
    openai_reasoning_effort: str = "low"
    openai_store: bool = False
    resend_api_key: str | None = None
    resend_base_url: str = "https://api.resend.com"
    digest_from_address: str = "NAV Meal Planner <onboarding@resend.dev>"
    menu_base_url: str = "https://techdining.api.nutrislice.com/menu/api"
    menu_school: str = "north-ave-dining-hall"
    menu_timeout_seconds: float = 15.0
    menu_cache_ttl_seconds: int = 900
    estimator_timeout_seconds: float = 60.0
    composer_timeout_seconds: float = 90.0
    delivery_timeout_seconds: float = 10.0
    rating_reorder_delay_seconds: float = 0.6
    enforce_day_variety: bool = True
    dining_timezone: str = "America/New_York"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def configured_secret(raw: str | None) -> str | None:
    """Return a usable secret, treating blanks and placeholders as unset."""
    if raw is None:
        return None
    cleaned = raw.strip()
    if cleaned in _PLACEHOLDER_SECRETS:
        return None
    return cleaned
