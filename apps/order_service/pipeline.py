"""
Order creation pipeline.

Two phases with a hard boundary between them:

1. Durable phase: validate the submission, then create header + lines in
   one transaction. Any failure here fails the request.
2. Best-effort phase: render the delivery note and email it. Once phase 1
   committed, the order exists; nothing in phase 2 can turn the response
   into a failure. Problems are reported in ``NotificationOutcome`` and a
   warning, and the caller can retry through the resend endpoint.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import psycopg

from apps.order_service import metrics
from apps.order_service.app_context import DatabaseClientProtocol
from apps.order_service.authorization import ActingIdentity
from apps.order_service.exceptions import (
    AuthenticationRequiredError,
    MissingRecipientError,
    OrderIntegrityError,
    OrderPersistenceError,
    OrderValidationError,
)
from apps.order_service.line_validator import validate_order
from apps.order_service.notification import NotificationDispatcher, recipient_email
from apps.order_service.schemas import (
    ComposedOrder,
    NotificationOutcome,
    OrderCreatedResponse,
)
from apps.order_service.transaction import OrderTransactionCoordinator

logger = logging.getLogger(__name__)

DocumentRenderer = Callable[[ComposedOrder], bytes]

TRIGGER = "order_created"


def _resend_hint(order_id: int) -> str:
    return f"use POST /orders/{order_id}/document to resend it"


@dataclass(frozen=True)
class OrderPipelineResult:
    """Durable outcome (always present) plus the notification outcome."""

    order: ComposedOrder
    notification: NotificationOutcome
    warning: str | None = None

    def to_response(self) -> OrderCreatedResponse:
        return OrderCreatedResponse(
            order=self.order, notification=self.notification, warning=self.warning
        )


class OrderPipeline:
    """
    Validate, commit, then notify.

    Args:
        db: Database client (product lookups during validation)
        coordinator: Atomic order creation
        render_document: Composed order -> delivery note bytes
        dispatcher: Delivery-note email sender; None disables notifications
        notifications_enabled: Configuration switch for the best-effort phase

    Example:
        >>> result = await pipeline.create_order(ActingIdentity(user_id=42), payload)
        >>> result.order.id, result.notification.status
        (17, 'sent')
    """

    def __init__(
        self,
        db: DatabaseClientProtocol,
        coordinator: OrderTransactionCoordinator,
        render_document: DocumentRenderer,
        dispatcher: NotificationDispatcher | None,
        *,
        notifications_enabled: bool = True,
    ) -> None:
        self._db = db
        self._coordinator = coordinator
        self._render_document = render_document
        self._dispatcher = dispatcher
        self.notifications_enabled = notifications_enabled

    async def create_order(
        self, identity: ActingIdentity | None, payload: Any
    ) -> OrderPipelineResult:
        """
        Run the full creation flow for ``identity``.

        Raises:
            AuthenticationRequiredError: No acting identity
            OrderValidationError: Submission rejected; nothing written
            OrderIntegrityError: Constraint violation at commit; rolled back
            OrderPersistenceError: Other storage failure; rolled back
        """
        if identity is None:
            raise AuthenticationRequiredError("Authentication required")

        started = time.perf_counter()
        order = await self._durable_phase(identity, payload)
        metrics.order_creation_duration_seconds.observe(time.perf_counter() - started)
        metrics.orders_created_total.labels(status="created").inc()

        notification, warning = await self._best_effort_phase(order)
        metrics.delivery_notes_total.labels(trigger=TRIGGER, status=notification.status).inc()

        return OrderPipelineResult(order=order, notification=notification, warning=warning)

    async def _durable_phase(self, identity: ActingIdentity, payload: Any) -> ComposedOrder:
        try:
            validated = await asyncio.to_thread(validate_order, payload, self._db.product_exists)
        except OrderValidationError as exc:
            metrics.orders_created_total.labels(status="rejected").inc()
            metrics.order_validation_rejections_total.labels(
                scope="line" if exc.line_index else "order"
            ).inc()
            logger.info(
                "Order submission rejected",
                extra={"user_id": identity.user_id, "reason": exc.message, "line": exc.line_index},
            )
            raise
        except psycopg.Error as exc:
            metrics.orders_created_total.labels(status="failed").inc()
            logger.error(
                "Catalog lookup failed during validation",
                extra={"user_id": identity.user_id, "error_type": type(exc).__name__},
                exc_info=True,
            )
            raise OrderPersistenceError("Error creating the order") from exc

        try:
            return await asyncio.to_thread(
                self._coordinator.create_order, identity.user_id, validated
            )
        except OrderIntegrityError:
            metrics.orders_created_total.labels(status="integrity_error").inc()
            raise
        except OrderPersistenceError:
            metrics.orders_created_total.labels(status="failed").inc()
            raise

    async def _best_effort_phase(
        self, order: ComposedOrder
    ) -> tuple[NotificationOutcome, str | None]:
        if not self.notifications_enabled or self._dispatcher is None:
            return NotificationOutcome(status="skipped", detail="Notifications are disabled"), None

        try:
            recipient_email(order)
        except MissingRecipientError as exc:
            logger.warning(
                "Delivery note skipped: owner has no email", extra={"order_id": order.id}
            )
            return (
                NotificationOutcome(status="skipped", detail=exc.message),
                f"Order created but no delivery note was sent: {exc.message.lower()}",
            )

        try:
            document = await asyncio.to_thread(self._render_document, order)
            result = await self._dispatcher.dispatch(order, document)
        except Exception as exc:
            logger.error(
                "Delivery note failed after commit",
                extra={"order_id": order.id, "error_type": type(exc).__name__},
                exc_info=True,
            )
            return (
                NotificationOutcome(
                    status="failed", detail="Delivery note could not be produced", retryable=True
                ),
                f"Order created but the delivery note could not be sent; {_resend_hint(order.id)}",
            )

        if result.success:
            return NotificationOutcome(status="sent", message_id=result.message_id), None

        logger.warning(
            "Delivery note transport failed after commit",
            extra={"order_id": order.id, "retryable": result.retryable},
        )
        return (
            NotificationOutcome(
                status="failed", detail=result.error, retryable=result.retryable
            ),
            f"Order created but the delivery note email failed; {_resend_hint(order.id)}",
        )


__all__ = ["DocumentRenderer", "OrderPipeline", "OrderPipelineResult"]
