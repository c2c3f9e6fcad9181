"""
Order transaction coordinator.

Creates an order header and all of its lines as one atomic unit, then
re-reads the composed order inside the same transaction. Either the header
and every line are committed, or nothing is.
"""

from __future__ import annotations

import logging
from datetime import date

import psycopg

from apps.order_service.app_context import DatabaseClientProtocol
from apps.order_service.composition import assemble_composed_order
from apps.order_service.exceptions import (
    OrderIntegrityError,
    OrderPersistenceError,
    OrderValidationError,
)
from apps.order_service.line_validator import MSG_EMPTY_LINES
from apps.order_service.schemas import ComposedOrder, ValidatedOrder

logger = logging.getLogger(__name__)


class OrderTransactionCoordinator:
    """
    Atomic order creation.

    Only accepts a ``ValidatedOrder``; validation has already run and no
    transaction is opened for a rejected submission.

    Example:
        >>> coordinator = OrderTransactionCoordinator(db)
        >>> order = coordinator.create_order(owner_id=42, validated=validated)
        >>> order.lines[0].quantity
        2
    """

    def __init__(self, db: DatabaseClientProtocol) -> None:
        self._db = db

    def create_order(self, owner_id: int, validated: ValidatedOrder) -> ComposedOrder:
        """
        Insert header + lines and return the composed order as committed.

        Raises:
            OrderValidationError: If ``validated`` is not a ValidatedOrder or
                carries no lines
            OrderIntegrityError: A foreign key or check constraint failed at
                commit time (e.g. product deleted since validation)
            OrderPersistenceError: Any other storage failure; rolled back
        """
        if not isinstance(validated, ValidatedOrder):
            raise OrderValidationError("Order submission has not been validated")
        if not validated.lines:
            raise OrderValidationError(MSG_EMPTY_LINES)

        order_date = validated.order_date or date.today()

        try:
            with self._db.transaction() as conn:
                order_id = self._db.insert_order_header(
                    conn, owner_id, order_date, validated.total
                )
                self._db.insert_order_lines(conn, order_id, validated.lines)
                rows = self._db.fetch_order_rows(order_id, conn=conn)
                if rows is None:
                    raise RuntimeError(f"Order {order_id} not visible after insert")
                header_row, line_rows = rows
                composed = assemble_composed_order(header_row, line_rows)
        except psycopg.IntegrityError as exc:
            logger.warning(
                "Order rejected by integrity constraint",
                extra={
                    "owner_id": owner_id,
                    "error_type": type(exc).__name__,
                    "constraint": getattr(exc.diag, "constraint_name", None),
                },
            )
            raise OrderIntegrityError(
                "Reference error: product or user is not valid",
                details=self._integrity_detail(exc),
            ) from exc
        except psycopg.Error as exc:
            logger.error(
                "Order persistence failed",
                extra={"owner_id": owner_id, "error_type": type(exc).__name__},
                exc_info=True,
            )
            raise OrderPersistenceError("Error creating the order") from exc

        logger.info(
            "Order committed",
            extra={
                "order_id": composed.id,
                "owner_id": owner_id,
                "line_count": len(composed.lines),
                "total": str(composed.total),
            },
        )
        return composed

    @staticmethod
    def _integrity_detail(exc: psycopg.IntegrityError) -> str:
        """Constraint name plus primary message, without row values."""
        diag = exc.diag
        constraint = getattr(diag, "constraint_name", None)
        primary = getattr(diag, "message_primary", None)
        if constraint and primary:
            return f"{constraint}: {primary}"
        return primary or constraint or type(exc).__name__


__all__ = ["OrderTransactionCoordinator"]
