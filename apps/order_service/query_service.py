"""
Order read paths and delivery-note resend.

Every method asks the AuthorizationGuard. Missing resources are reported
as 404 and denied existing resources as 403; for the by-owner listing the
guard runs before the owner lookup, so a caller cannot probe which user ids
exist.
"""

from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import Callable
from typing import Any, TypeVar

import psycopg

from apps.order_service import metrics
from apps.order_service.app_context import DatabaseClientProtocol
from apps.order_service.authorization import ActingIdentity, AuthorizationGuard
from apps.order_service.composition import assemble_composed_order
from apps.order_service.exceptions import (
    AuthenticationRequiredError,
    InvalidIdentifierError,
    NotificationDeliveryError,
    OrderNotFoundError,
    OrderPersistenceError,
    OwnerNotFoundError,
)
from apps.order_service.notification import NotificationDispatcher, recipient_email
from apps.order_service.pipeline import DocumentRenderer
from apps.order_service.schemas import (
    ComposedOrder,
    DocumentDispatchResponse,
    PaginatedOrders,
    Pagination,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

TRIGGER = "resend"


def parse_identifier(raw: Any, *, label: str = "order") -> int:
    """
    Parse a path identifier as a positive integer.

    Raises:
        InvalidIdentifierError: For anything else (400, not 422)

    Examples:
        >>> parse_identifier("17")
        17
    """
    text = str(raw).strip() if raw is not None else ""
    if not (text.isascii() and text.isdigit()) or int(text) <= 0:
        raise InvalidIdentifierError(f"Invalid {label} id")
    return int(text)


def _lenient_positive_int(raw: Any, default: int) -> int:
    if raw is None or isinstance(raw, bool):
        return default
    try:
        value = int(str(raw).strip())
    except ValueError:
        return default
    return value if value > 0 else default


def resolve_pagination(
    page: Any, page_size: Any, *, default_page_size: int, max_page_size: int
) -> tuple[int, int]:
    """
    Parse pagination parameters; invalid values fall back to defaults.

    Examples:
        >>> resolve_pagination("abc", "500", default_page_size=20, max_page_size=100)
        (1, 100)
    """
    resolved_page = _lenient_positive_int(page, 1)
    resolved_size = min(_lenient_positive_int(page_size, default_page_size), max_page_size)
    return resolved_page, resolved_size


class OrderQueryService:
    """
    Read paths layered on the authorization guard.

    Args:
        db: Database client
        guard: Shared authorization guard
        render_document: Composed order -> delivery note bytes
        dispatcher: Delivery-note sender used by resend; None when email is
            not configured
        default_page_size: Admin listing page size when none is requested
        max_page_size: Upper bound for the requested page size
    """

    def __init__(
        self,
        db: DatabaseClientProtocol,
        guard: AuthorizationGuard,
        render_document: DocumentRenderer,
        dispatcher: NotificationDispatcher | None,
        *,
        default_page_size: int = 20,
        max_page_size: int = 100,
    ) -> None:
        self._db = db
        self._guard = guard
        self._render_document = render_document
        self._dispatcher = dispatcher
        self.default_page_size = default_page_size
        self.max_page_size = max_page_size

    @staticmethod
    def _require_identity(identity: ActingIdentity | None) -> ActingIdentity:
        if identity is None:
            raise AuthenticationRequiredError("Authentication required")
        return identity

    def _read(self, operation: Callable[..., T], *args: Any) -> T:
        try:
            return operation(*args)
        except psycopg.Error as exc:
            logger.error(
                "Order read failed",
                extra={"operation": getattr(operation, "__name__", "read")},
                exc_info=True,
            )
            raise OrderPersistenceError("Error reading orders") from exc

    def get_order(self, identity: ActingIdentity | None, order_id: int) -> ComposedOrder:
        """
        Raises:
            OrderNotFoundError: No such order (404)
            OrderAccessDeniedError: Not the owner and not elevated (403)
        """
        identity = self._require_identity(identity)
        rows = self._read(self._db.fetch_order_rows, order_id)
        if rows is None:
            raise OrderNotFoundError("Order not found", order_id=order_id)

        header, lines = rows
        self._guard.require_order_access(identity, header["user_id"], order_id=order_id)
        return assemble_composed_order(header, lines)

    def list_orders_for_owner(
        self, identity: ActingIdentity | None, owner_id: int
    ) -> list[ComposedOrder]:
        """
        Orders of ``owner_id``, newest order date first.

        Raises:
            OrderAccessDeniedError: Guard denies (checked first, 403)
            OwnerNotFoundError: No such user (404)
        """
        identity = self._require_identity(identity)
        self._guard.require_order_access(identity, owner_id)

        if self._read(self._db.get_user, owner_id) is None:
            raise OwnerNotFoundError("User not found", user_id=owner_id)

        rows = self._read(self._db.list_order_rows_by_owner, owner_id)
        return [assemble_composed_order(header, lines) for header, lines in rows]

    def list_all_orders(
        self,
        identity: ActingIdentity | None,
        page: Any = None,
        page_size: Any = None,
    ) -> PaginatedOrders:
        """Admin listing of every order, newest first, one page at a time."""
        identity = self._require_identity(identity)
        self._guard.require_elevated(identity)

        resolved_page, resolved_size = resolve_pagination(
            page,
            page_size,
            default_page_size=self.default_page_size,
            max_page_size=self.max_page_size,
        )
        total, rows = self._read(
            self._db.list_order_rows_page, resolved_size, (resolved_page - 1) * resolved_size
        )
        return PaginatedOrders(
            orders=[assemble_composed_order(header, lines) for header, lines in rows],
            pagination=Pagination(
                total=total,
                page=resolved_page,
                pages=math.ceil(total / resolved_size) if total else 0,
                page_size=resolved_size,
            ),
        )

    async def resend_delivery_document(
        self, identity: ActingIdentity | None, order_id: int
    ) -> DocumentDispatchResponse:
        """
        Rebuild and email the delivery note of an existing order.

        Raises:
            OrderNotFoundError: 404
            OrderAccessDeniedError: 403
            MissingRecipientError: Owner has no email (400)
            NotificationDeliveryError: Transport failed (502, carries
                ``retryable``)
        """
        order = await asyncio.to_thread(self.get_order, identity, order_id)
        email = recipient_email(order)

        if self._dispatcher is None:
            metrics.delivery_notes_total.labels(trigger=TRIGGER, status="skipped").inc()
            raise NotificationDeliveryError("Email delivery is not configured", retryable=False)

        document = await asyncio.to_thread(self._render_document, order)
        result = await self._dispatcher.dispatch(order, document)
        if not result.success:
            metrics.delivery_notes_total.labels(trigger=TRIGGER, status="failed").inc()
            raise NotificationDeliveryError(
                "Delivery note could not be sent", retryable=result.retryable
            )

        metrics.delivery_notes_total.labels(trigger=TRIGGER, status="sent").inc()
        return DocumentDispatchResponse(
            message="Delivery note sent",
            email=email,
            order_id=order.id,
            message_id=result.message_id,
        )


__all__ = [
    "OrderQueryService",
    "parse_identifier",
    "resolve_pagination",
]
