"""Configuration loader for the route planner."""

import logging
import os
from typing import Optional

from dotenv import load_dotenv

from .models.config import (
    CachingConfig,
    FallbackBehavior,
    ProviderConfig,
    RoutingConfig,
)
from .models.route import RouteProvider

load_dotenv()

logger = logging.getLogger(__name__)

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
AIRPORTS_CSV = os.getenv("AIRPORTS_CSV")
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "http://localhost:5173").split(",")
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8000"))


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("true", "1", "yes")


def load_config(api_key: Optional[str] = None) -> RoutingConfig:
    """Build a validated RoutingConfig from the environment (.env included)."""
    google = ProviderConfig(
        api_key=api_key or os.getenv("GOOGLE_MAPS_API_KEY") or None,
        endpoint=os.getenv("GOOGLE_DIRECTIONS_URL") or None,
    )
    return RoutingConfig(
        providers={RouteProvider.GOOGLE: google},
        fallback_behavior=FallbackBehavior(
            max_retries=int(os.getenv("ROUTING_MAX_RETRIES", "3")),
            timeout_ms=int(os.getenv("ROUTING_TIMEOUT_MS", "10000")),
            fallback_to_offline=_env_bool("ROUTING_FALLBACK_TO_OFFLINE", True),
        ),
        caching=CachingConfig(
            enabled=_env_bool("ROUTE_CACHE_ENABLED", True),
            ttl_minutes=float(os.getenv("ROUTE_CACHE_TTL_MINUTES", "5")),
            max_cache_size=int(os.getenv("ROUTE_CACHE_MAX_SIZE", "100")),
        ),
    )


def check_environment(config: RoutingConfig) -> None:
    """Log which credentials are present, never their values."""
    logger.info("Environment Check:")
    for name, provider in config.providers.items():
        logger.info(f"   {name.value} api key: {'configured' if provider.api_key else 'MISSING'}")
    if not config.available_providers():
        logger.warning("No routing provider configured, every route will be estimated locally")
