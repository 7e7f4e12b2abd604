"""
Centralized configuration for the material lists backend.

All environment variables and settings should be defined here
to avoid duplication across modules.
"""
import os
from functools import lru_cache


class Settings:
    """Application settings loaded from environment variables."""

    # CORS - comma-separated list of allowed origins
    ALLOWED_ORIGINS: list = os.environ.get(
        "ALLOWED_ORIGINS",
        "http://localhost:3000,http://127.0.0.1:3000"
    ).split(",")

    # Document store (Strapi)
    STRAPI_URL: str = os.environ.get("STRAPI_URL", "http://localhost:1337")
    STRAPI_API_TOKEN: str = os.environ.get("STRAPI_API_TOKEN", "")

    # Product catalog (WooCommerce REST v3)
    WOOCOMMERCE_URL: str = os.environ.get("WOOCOMMERCE_URL", "")
    WOOCOMMERCE_CONSUMER_KEY: str = os.environ.get("WOOCOMMERCE_CONSUMER_KEY", "")
    WOOCOMMERCE_CONSUMER_SECRET: str = os.environ.get("WOOCOMMERCE_CONSUMER_SECRET", "")

    # Per-request timeout for outbound HTTP calls (seconds)
    HTTP_TIMEOUT: float = float(os.environ.get("HTTP_TIMEOUT", "15"))

    # Overall budget for one availability check (seconds, 0 = no budget)
    RECONCILE_BUDGET_SECONDS: float = float(os.environ.get("RECONCILE_BUDGET_SECONDS", "120"))

    # API key for protecting bulk endpoints (optional)
    API_KEY: str = os.environ.get("LISTAS_API_KEY", "")

    # Engine config file (matching thresholds, page sizes)
    ENGINE_CONFIG_PATH: str = os.environ.get("LISTAS_ENGINE_CONFIG", "")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Singleton instance for easy import
settings = get_settings()
