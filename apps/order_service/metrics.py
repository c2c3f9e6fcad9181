"""Prometheus metrics definitions for the Order Service.

Usage:
    from apps.order_service.metrics import orders_created_total

    orders_created_total.labels(status="created").inc()
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# ============================================================================
# Business Metrics
# ============================================================================

orders_created_total = Counter(
    "order_service_orders_created_total",
    "Order creation attempts by outcome",
    ["status"],  # status: created, rejected, integrity_error, failed
)

order_validation_rejections_total = Counter(
    "order_service_validation_rejections_total",
    "Order submissions rejected by validation",
    ["scope"],  # scope: order, line
)

order_creation_duration_seconds = Histogram(
    "order_service_order_creation_duration_seconds",
    "Time from request validation to committed order (durable phase only)",
)

delivery_notes_total = Counter(
    "order_service_delivery_notes_total",
    "Delivery-note notifications by outcome",
    ["trigger", "status"],  # trigger: order_created, resend; status: sent, failed, skipped
)

# ============================================================================
# Infrastructure Metrics
# ============================================================================

database_connection_status = Gauge(
    "order_service_database_connected",
    "Database connection status (1=connected, 0=disconnected)",
)
