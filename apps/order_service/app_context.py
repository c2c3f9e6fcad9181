"""Application context for dependency injection in the Order Service.

Holds every long-lived dependency (database client, mail channel, guard,
services) so routes receive them through ``Depends(get_context)`` and tests
can swap any of them for a double.

Usage:
    async def my_route(ctx: AppContext = Depends(get_context)):
        order = await asyncio.to_thread(ctx.query_service.get_order, identity, 17)
"""

from __future__ import annotations

from collections.abc import Sequence
from contextlib import AbstractContextManager
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from apps.order_service.authorization import AuthorizationGuard
    from apps.order_service.pipeline import OrderPipeline
    from apps.order_service.query_service import OrderQueryService
    from apps.order_service.schemas import ValidatedOrderLine
    from libs.alerts.channels.base import BaseChannel


class DatabaseClientProtocol(Protocol):
    """Protocol for database operations.

    Lets services and tests depend on behaviour rather than on the concrete
    psycopg-backed DatabaseClient.
    """

    def transaction(self) -> AbstractContextManager[Any]:
        """Start a database transaction context manager."""
        ...

    def check_connection(self) -> bool:
        ...

    def get_user(self, user_id: int, conn: Any | None = None) -> dict[str, Any] | None:
        ...

    def get_product(self, product_id: int, conn: Any | None = None) -> dict[str, Any] | None:
        ...

    def product_exists(self, product_id: int) -> bool:
        ...

    def insert_order_header(
        self, conn: Any, user_id: int, order_date: date, total: Decimal
    ) -> int:
        ...

    def insert_order_lines(
        self, conn: Any, order_id: int, lines: Sequence[ValidatedOrderLine]
    ) -> int:
        ...

    def fetch_order_rows(
        self, order_id: int, conn: Any | None = None
    ) -> tuple[dict[str, Any], list[dict[str, Any]]] | None:
        ...

    def list_order_rows_by_owner(
        self, owner_id: int
    ) -> list[tuple[dict[str, Any], list[dict[str, Any]]]]:
        ...

    def list_order_rows_page(
        self, limit: int, offset: int
    ) -> tuple[int, list[tuple[dict[str, Any], list[dict[str, Any]]]]]:
        ...


@dataclass
class AppContext:
    """Container for application dependencies.

    Attributes:
        db: Database client
        email_channel: Outbound mail transport (None when not configured)
        guard: Authorization guard shared by every path
        pipeline: Order creation pipeline
        query_service: Read paths and document resend
        jwt_secret: Secret used to verify bearer tokens
        jwt_algorithm: Signing algorithm of bearer tokens
    """

    db: DatabaseClientProtocol
    email_channel: BaseChannel | None
    guard: AuthorizationGuard
    pipeline: OrderPipeline
    query_service: OrderQueryService
    jwt_secret: str
    jwt_algorithm: str = "HS256"


__all__ = ["AppContext", "DatabaseClientProtocol"]
