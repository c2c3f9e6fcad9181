"""Configuration module for the Order Service.

Service-level tunables parsed from the environment into a dataclass.
Credentials (database URL, JWT secret, SMTP) live in ``config.settings``.

Usage:
    from apps.order_service.config import get_config

    config = get_config()
    if not config.notifications_enabled:
        logger.info("Delivery-note emails disabled")
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

logger = logging.getLogger(__name__)


# ============================================================================
# Helper Functions
# ============================================================================


def _get_float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Invalid float for %s=%s; using default=%s", name, raw, default)
        return default


def _get_int_env(name: str, default: int) -> int:
    """Parse int from environment variable with fallback to default.

    Args:
        name: Environment variable name
        default: Default value if env var is missing or invalid

    Returns:
        Parsed int value or default
    """
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Invalid int for %s=%s; using default=%s", name, raw, default)
        return default


def _get_bool_env_permissive(name: str, default: bool) -> bool:
    """Parse boolean from environment variable (permissive: true/yes/on/1)."""
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"true", "yes", "on", "1"}


# ============================================================================
# Configuration Dataclass
# ============================================================================


@dataclass
class OrderServiceConfig:
    """Order service configuration.

    Attributes:
        environment: Deployment environment name
        db_pool_min_size: Minimum pooled connections
        db_pool_max_size: Maximum pooled connections
        db_pool_timeout: Seconds to wait for a pooled connection
        default_page_size: Page size for the admin listing when none is given
        max_page_size: Upper bound applied to the requested page size
        notifications_enabled: Send delivery-note emails after order creation
        store_name: Store name shown on delivery notes and email subjects
        currency_symbol: Symbol appended to formatted amounts
    """

    environment: str = "dev"
    db_pool_min_size: int = 2
    db_pool_max_size: int = 10
    db_pool_timeout: float = 10.0
    default_page_size: int = 20
    max_page_size: int = 100
    notifications_enabled: bool = True
    store_name: str = "Storefront"
    currency_symbol: str = "€"


def get_config() -> OrderServiceConfig:
    """Load configuration from environment variables.

    Returns:
        OrderServiceConfig: Parsed configuration
    """
    default_page_size = max(1, _get_int_env("ORDERS_DEFAULT_PAGE_SIZE", 20))
    max_page_size = max(default_page_size, _get_int_env("ORDERS_MAX_PAGE_SIZE", 100))

    config = OrderServiceConfig(
        environment=os.getenv("ENVIRONMENT", "dev"),
        db_pool_min_size=_get_int_env("DB_POOL_MIN_SIZE", 2),
        db_pool_max_size=_get_int_env("DB_POOL_MAX_SIZE", 10),
        db_pool_timeout=_get_float_env("DB_POOL_TIMEOUT", 10.0),
        default_page_size=default_page_size,
        max_page_size=max_page_size,
        notifications_enabled=_get_bool_env_permissive("ORDER_NOTIFICATIONS_ENABLED", True),
        store_name=os.getenv("STORE_NAME", "Storefront"),
        currency_symbol=os.getenv("STORE_CURRENCY_SYMBOL", "€"),
    )

    logger.info(
        "Order service configuration loaded",
        extra={
            "environment": config.environment,
            "notifications_enabled": config.notifications_enabled,
            "default_page_size": config.default_page_size,
            "max_page_size": config.max_page_size,
        },
    )
    return config
