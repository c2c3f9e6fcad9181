"""Application factory for the Order Service.

Wires every dependency explicitly so tests can build the same application
with doubles:

    # In tests
    ctx = create_mock_context(query_service=fake_queries)
    app = create_app(test_mode=True, test_context=ctx, test_config=create_test_config())
    client = TestClient(app)

    # In production (main.py)
    app = create_app()
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from functools import partial
from typing import TYPE_CHECKING, Any

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app

from apps.order_service import __version__
from apps.order_service.routes import health, orders
from libs.common.logging import ASGITraceIDMiddleware

if TYPE_CHECKING:
    from apps.order_service.app_context import AppContext
    from apps.order_service.config import OrderServiceConfig
    from config.settings import Settings

logger = logging.getLogger(__name__)


def build_app_context(config: OrderServiceConfig, settings: Settings) -> AppContext:
    """Create the production AppContext.

    The database pool opens lazily, so this does no network I/O.
    """
    from apps.order_service.app_context import AppContext
    from apps.order_service.authorization import AuthorizationGuard
    from apps.order_service.database import DatabaseClient
    from apps.order_service.document_builder import build_delivery_document
    from apps.order_service.notification import NotificationDispatcher
    from apps.order_service.pipeline import OrderPipeline
    from apps.order_service.query_service import OrderQueryService
    from apps.order_service.transaction import OrderTransactionCoordinator
    from libs.alerts.channels.email import EmailChannel
    from libs.common.exceptions import ConfigurationError

    if not settings.database_url:
        raise ConfigurationError("DATABASE_URL not configured")

    db = DatabaseClient(
        settings.database_url,
        min_size=config.db_pool_min_size,
        max_size=config.db_pool_max_size,
        timeout=config.db_pool_timeout,
    )
    guard = AuthorizationGuard(user_lookup=db.get_user)
    render_document = partial(
        build_delivery_document,
        store_name=config.store_name,
        currency_symbol=config.currency_symbol,
    )

    email_channel = EmailChannel.from_settings(settings)
    dispatcher = NotificationDispatcher(
        email_channel, store_name=config.store_name, currency_symbol=config.currency_symbol
    )

    pipeline = OrderPipeline(
        db,
        OrderTransactionCoordinator(db),
        render_document,
        dispatcher,
        notifications_enabled=config.notifications_enabled,
    )
    query_service = OrderQueryService(
        db,
        guard,
        render_document,
        dispatcher,
        default_page_size=config.default_page_size,
        max_page_size=config.max_page_size,
    )

    if not settings.jwt_secret.get_secret_value():
        logger.warning("JWT_SECRET is not set; every authenticated request will be rejected")

    return AppContext(
        db=db,
        email_channel=email_channel,
        guard=guard,
        pipeline=pipeline,
        query_service=query_service,
        jwt_secret=settings.jwt_secret.get_secret_value(),
        jwt_algorithm=settings.jwt_algorithm,
    )


def create_app(
    *,
    test_mode: bool = False,
    test_context: AppContext | None = None,
    test_config: OrderServiceConfig | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        test_mode: If True, use the injected context/config and open no
            external connections
        test_context: AppContext to inject (testing only)
        test_config: Config to inject (testing only)

    Returns:
        FastAPI: Configured application instance
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        if test_mode:
            yield
            return

        from apps.order_service.config import get_config
        from config.settings import get_settings

        config = get_config()
        context = build_app_context(config, get_settings())
        app.state.config = config
        app.state.context = context
        logger.info(
            "Order service started",
            extra={"environment": config.environment, "version": __version__},
        )
        try:
            yield
        finally:
            context.db.close()
            logger.info("Order service stopped")

    app = FastAPI(
        title="Order Service",
        description="Order fulfillment for the storefront backend",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.version = __version__

    if test_mode:
        app.state.context = test_context
        app.state.config = test_config or create_test_config()

    app.add_middleware(ASGITraceIDMiddleware)
    app.mount("/metrics", make_asgi_app())

    app.include_router(health.router)
    app.include_router(orders.router)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "Unhandled error",
            extra={"path": request.url.path, "error_type": type(exc).__name__},
            exc_info=exc,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": {"message": "Internal server error"}},
        )

    return app


# ============================================================================
# Testing Utilities
# ============================================================================


def create_mock_context(**overrides: Any) -> AppContext:
    """Create an AppContext whose dependencies are all MagicMocks.

    Args:
        **overrides: Attribute overrides (e.g., db=fake_db, pipeline=real_pipeline)
    """
    from unittest.mock import MagicMock

    from apps.order_service.app_context import AppContext

    defaults: dict[str, Any] = {
        "db": MagicMock(),
        "email_channel": None,
        "guard": MagicMock(),
        "pipeline": MagicMock(),
        "query_service": MagicMock(),
        "jwt_secret": "test-secret",
        "jwt_algorithm": "HS256",
    }
    defaults.update(overrides)
    return AppContext(**defaults)


def create_test_config(**overrides: Any) -> OrderServiceConfig:
    """Create a test configuration with safe defaults."""
    from apps.order_service.config import OrderServiceConfig

    return dataclasses.replace(OrderServiceConfig(environment="test"), **overrides)
