"""
Pydantic schemas for the Order Service.

Validated request records, the composed order returned to callers, and the
response envelopes of every endpoint. Nothing downstream of the line
validator accepts an untyped payload.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from libs.common import Money, TimestampSerializerMixin

DEFAULT_COLOR = "Standard"
UNNAMED_PRODUCT = "Unnamed product"

# ============================================================================
# Validated request records
# ============================================================================


class ValidatedOrderLine(BaseModel):
    """One order line that passed validation."""

    model_config = ConfigDict(frozen=True)

    product_id: int = Field(..., gt=0)
    quantity: int = Field(..., gt=0)
    color: str = Field(DEFAULT_COLOR, min_length=1, max_length=50)
    display_name: str | None = None


class ValidatedOrder(BaseModel):
    """
    Order submission that passed validation.

    Produced only by ``line_validator.validate_order``; the transaction
    coordinator refuses anything else.
    """

    model_config = ConfigDict(frozen=True)

    total: Decimal = Field(..., gt=0)
    order_date: date | None = None
    lines: tuple[ValidatedOrderLine, ...]


# ============================================================================
# Composed order
# ============================================================================


class ProductSummary(BaseModel):
    id: int
    name: str | None = None
    price: Money | None = None
    image: str | None = None
    image_folder: str | None = None


class OwnerSummary(BaseModel):
    id: int
    username: str | None = None
    name: str | None = None
    email: str | None = None
    address: str | None = None
    city: str | None = None
    postal_code: str | None = None


class OrderLineDetail(BaseModel):
    """
    Order line as returned to callers.

    ``display_name`` is already resolved (frozen name, then catalog name,
    then a placeholder). ``unit_price`` and ``subtotal`` come from the
    current catalog price and are None once the product no longer exists.
    """

    id: int
    product_id: int
    color: str
    quantity: int
    display_name: str
    stored_name: str | None = None
    unit_price: Money | None = None
    subtotal: Money | None = None
    product: ProductSummary | None = None


class ComposedOrder(BaseModel):
    """Order header joined with its lines, product summaries and owner summary."""

    id: int
    user_id: int
    order_date: date
    total: Money
    owner: OwnerSummary | None = None
    lines: list[OrderLineDetail] = Field(default_factory=list)


# ============================================================================
# Response envelopes
# ============================================================================


class Pagination(BaseModel):
    total: int
    page: int
    pages: int
    page_size: int


class PaginatedOrders(BaseModel):
    orders: list[ComposedOrder]
    pagination: Pagination


NotificationStatus = Literal["sent", "failed", "skipped"]


class NotificationOutcome(BaseModel):
    """Best-effort phase result, reported next to the durable order."""

    status: NotificationStatus
    detail: str | None = None
    message_id: str | None = None
    retryable: bool = False


class OrderCreatedResponse(BaseModel):
    """Response body for ``POST /orders``.

    ``order`` is always present once the transaction committed; a problem
    with the delivery note shows up in ``notification`` and ``warning``.
    """

    order: ComposedOrder
    notification: NotificationOutcome
    warning: str | None = None


class DocumentDispatchResponse(BaseModel):
    message: str
    email: str
    order_id: int
    message_id: str | None = None


class HealthResponse(TimestampSerializerMixin, BaseModel):
    """Health check response."""

    status: Literal["healthy", "degraded"]
    service: str = "order_service"
    version: str
    database: Literal["connected", "disconnected"]
    notifications_enabled: bool
    timestamp: datetime

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "status": "healthy",
                    "service": "order_service",
                    "version": "0.1.0",
                    "database": "connected",
                    "notifications_enabled": True,
                    "timestamp": "2026-03-02T10:30:00Z",
                }
            ]
        }
    }
