"""Logging setup shared by the storefront services.

Example:
    >>> from libs.common.logging.config import configure_logging
    >>> logger = configure_logging(service_name="order_service", log_level="INFO")
    >>> logger.info("Service started", extra={"context": {"port": 8000}})
"""

import logging
import sys

from libs.common.logging.context import get_trace_id
from libs.common.logging.formatter import JSONFormatter


class TraceIDFilter(logging.Filter):
    """Stamp each record with the trace ID bound to the current context."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.trace_id = get_trace_id()
        return True


def configure_logging(
    service_name: str,
    log_level: str = "INFO",
    include_context: bool = True,
) -> logging.Logger:
    """Install a single JSON stdout handler on the root logger.

    Calling this more than once replaces the previous handler, so the app
    factory and tests can both call it without duplicating output.

    Args:
        service_name: Value of the ``service`` field on every line
        log_level: Minimum level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        include_context: Whether structured ``extra`` fields are emitted

    Returns:
        The configured root logger

    Raises:
        ValueError: If log_level is not a known level name
    """
    numeric_level = getattr(logging, log_level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {log_level}")

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(numeric_level)
    handler.setFormatter(JSONFormatter(service_name=service_name, include_context=include_context))
    handler.addFilter(TraceIDFilter())
    root_logger.addHandler(handler)

    return root_logger


def get_logger(name: str | None = None) -> logging.Logger:
    return logging.getLogger(name)


def log_with_context(
    logger: logging.Logger,
    level: str,
    message: str,
    **context_fields: object,
) -> None:
    """Log ``message`` with ``context_fields`` grouped under ``"context"``.

    Example:
        >>> log_with_context(logger, "INFO", "Order committed", order_id=42, line_count=2)
    """
    log_method = getattr(logger, level.lower())
    log_method(message, extra={"context": context_fields})
