"""FastAPI dependency providers for the Order Service.

Usage:
    from apps.order_service.dependencies import get_context, get_config

    @router.get("/example")
    async def example_route(
        ctx: AppContext = Depends(get_context),
        config: OrderServiceConfig = Depends(get_config),
    ):
        ...
"""

from __future__ import annotations

from typing import TYPE_CHECKING, cast

from fastapi import Request

if TYPE_CHECKING:
    from apps.order_service.app_context import AppContext
    from apps.order_service.config import OrderServiceConfig


def get_context(request: Request) -> AppContext:
    """Get application context from FastAPI app state.

    Raises:
        RuntimeError: If the lifespan did not store an AppContext in app.state
    """
    from apps.order_service.app_context import AppContext as AppContextType

    ctx = getattr(request.app.state, "context", None)
    if ctx is None:
        raise RuntimeError(
            "AppContext not initialized in app.state. "
            "Check that app_factory.py initializes app.state.context during startup."
        )
    return cast(AppContextType, ctx)


def get_config(request: Request) -> OrderServiceConfig:
    """Get configuration from FastAPI app state."""
    from apps.order_service.config import OrderServiceConfig as ConfigType

    config = getattr(request.app.state, "config", None)
    if config is None:
        raise RuntimeError("OrderServiceConfig not initialized in app.state.")
    return cast(ConfigType, config)


def get_version(request: Request) -> str:
    """Get service version from FastAPI app state (falls back to the package version)."""
    version = getattr(request.app.state, "version", None)
    if version is None:
        from apps.order_service import __version__

        return __version__
    return cast(str, version)
