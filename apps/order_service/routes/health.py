"""Health check endpoint for the Order Service."""

from __future__ import annotations

import asyncio
import logging
from datetime import UTC, datetime

from fastapi import APIRouter, Depends

from apps.order_service import metrics
from apps.order_service.app_context import AppContext
from apps.order_service.config import OrderServiceConfig
from apps.order_service.dependencies import get_config, get_context, get_version
from apps.order_service.schemas import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(
    ctx: AppContext = Depends(get_context),
    config: OrderServiceConfig = Depends(get_config),
    version: str = Depends(get_version),
) -> HealthResponse:
    """Report database connectivity. The service stays up (degraded) without it."""
    connected = await asyncio.to_thread(ctx.db.check_connection)
    metrics.database_connection_status.set(1 if connected else 0)
    if not connected:
        logger.warning("Health check: database unavailable")

    return HealthResponse(
        status="healthy" if connected else "degraded",
        version=version,
        database="connected" if connected else "disconnected",
        notifications_enabled=config.notifications_enabled and ctx.email_channel is not None,
        timestamp=datetime.now(UTC),
    )
