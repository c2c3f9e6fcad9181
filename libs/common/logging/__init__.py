"""Structured JSON logging with per-request trace IDs.

Usage:
    # At service startup
    from libs.common.logging import configure_logging
    configure_logging(service_name="order_service", log_level="INFO")

    # Anywhere else
    logger = logging.getLogger(__name__)
    logger.info("Order committed", extra={"order_id": 42})
"""

from libs.common.logging.config import (
    TraceIDFilter,
    configure_logging,
    get_logger,
    log_with_context,
)
from libs.common.logging.context import (
    TRACE_ID_HEADER,
    LogContext,
    clear_trace_id,
    generate_trace_id,
    get_or_create_trace_id,
    get_trace_id,
    set_trace_id,
)
from libs.common.logging.formatter import JSONFormatter
from libs.common.logging.middleware import ASGITraceIDMiddleware, add_trace_id_middleware

__all__ = [
    "configure_logging",
    "get_logger",
    "log_with_context",
    "TraceIDFilter",
    "generate_trace_id",
    "get_trace_id",
    "set_trace_id",
    "clear_trace_id",
    "get_or_create_trace_id",
    "LogContext",
    "TRACE_ID_HEADER",
    "JSONFormatter",
    "ASGITraceIDMiddleware",
    "add_trace_id_middleware",
]
