"""Shared fixtures for order service tests.

``FakeDatabase`` is an in-memory stand-in for ``DatabaseClient`` that keeps
the same row shapes (``owner_*`` and ``product_*`` join columns) and the
same all-or-nothing ``transaction()`` semantics.
"""

from __future__ import annotations

import copy
from collections.abc import Generator, Sequence
from contextlib import contextmanager
from datetime import date
from decimal import Decimal
from typing import Any

import psycopg
import pytest

from apps.order_service.authorization import AuthorizationGuard
from apps.order_service.document_builder import build_delivery_document
from apps.order_service.notification import NotificationDispatcher
from apps.order_service.pipeline import OrderPipeline
from apps.order_service.query_service import OrderQueryService
from apps.order_service.transaction import OrderTransactionCoordinator
from libs.alerts.channels.base import BaseChannel
from libs.alerts.models import DeliveryResult, EmailAttachment


class FakeDatabase:
    def __init__(self) -> None:
        self.users: dict[int, dict[str, Any]] = {}
        self.products: dict[int, dict[str, Any]] = {}
        self.orders: dict[int, dict[str, Any]] = {}
        self.lines: list[dict[str, Any]] = []
        self.product_lookups: list[int] = []
        self.fail_line_insert: Exception | None = None
        self.read_error: Exception | None = None
        self.connected = True
        self.transactions_opened = 0
        self._next_order_id = 1
        self._next_line_id = 1

    # -- seeding ---------------------------------------------------------

    def add_user(self, user_id: int, **fields: Any) -> dict[str, Any]:
        user = {
            "id": user_id,
            "username": f"user{user_id}",
            "name": f"User {user_id}",
            "email": f"user{user_id}@example.com",
            "address": "1 Main Street",
            "city": "Madrid",
            "postal_code": "28001",
            "role": "customer",
        }
        user.update(fields)
        self.users[user_id] = user
        return user

    def add_product(self, product_id: int, name: str, price: str, **fields: Any) -> None:
        product = {
            "id": product_id,
            "name": name,
            "price": Decimal(price),
            "image": f"{product_id}.jpg",
            "image_folder": "products",
        }
        product.update(fields)
        self.products[product_id] = product

    # -- DatabaseClientProtocol -------------------------------------------

    @contextmanager
    def transaction(self) -> Generator[object, None, None]:
        self.transactions_opened += 1
        snapshot = (
            copy.deepcopy(self.orders),
            copy.deepcopy(self.lines),
            self._next_order_id,
            self._next_line_id,
        )
        try:
            yield object()
        except Exception:
            self.orders, self.lines, self._next_order_id, self._next_line_id = snapshot
            raise

    def check_connection(self) -> bool:
        return self.connected

    def get_user(self, user_id: int, conn: Any | None = None) -> dict[str, Any] | None:
        self._maybe_fail()
        user = self.users.get(user_id)
        return dict(user) if user else None

    def get_product(self, product_id: int, conn: Any | None = None) -> dict[str, Any] | None:
        product = self.products.get(product_id)
        return dict(product) if product else None

    def product_exists(self, product_id: int) -> bool:
        self.product_lookups.append(product_id)
        return product_id in self.products

    def insert_order_header(
        self, conn: Any, user_id: int, order_date: date, total: Decimal
    ) -> int:
        if user_id not in self.users:
            raise psycopg.errors.ForeignKeyViolation("orders_user_id_fkey")
        order_id = self._next_order_id
        self._next_order_id += 1
        self.orders[order_id] = {
            "id": order_id,
            "user_id": user_id,
            "order_date": order_date,
            "total": total,
        }
        return order_id

    def insert_order_lines(self, conn: Any, order_id: int, lines: Sequence[Any]) -> int:
        if not lines:
            raise ValueError("Refusing to insert an order without lines")
        for line in lines:
            if self.fail_line_insert is not None:
                raise self.fail_line_insert
            if line.product_id not in self.products:
                raise psycopg.errors.ForeignKeyViolation("order_lines_product_id_fkey")
            self.lines.append(
                {
                    "id": self._next_line_id,
                    "order_id": order_id,
                    "product_id": line.product_id,
                    "color": line.color,
                    "quantity": line.quantity,
                    "display_name": line.display_name,
                }
            )
            self._next_line_id += 1
        return len(lines)

    def fetch_order_rows(
        self, order_id: int, conn: Any | None = None
    ) -> tuple[dict[str, Any], list[dict[str, Any]]] | None:
        self._maybe_fail()
        order = self.orders.get(order_id)
        if order is None:
            return None
        return self._header_row(order), self._line_rows(order_id)

    def list_order_rows_by_owner(
        self, owner_id: int
    ) -> list[tuple[dict[str, Any], list[dict[str, Any]]]]:
        self._maybe_fail()
        orders = [order for order in self._sorted_orders() if order["user_id"] == owner_id]
        return [(self._header_row(order), self._line_rows(order["id"])) for order in orders]

    def list_order_rows_page(
        self, limit: int, offset: int
    ) -> tuple[int, list[tuple[dict[str, Any], list[dict[str, Any]]]]]:
        self._maybe_fail()
        orders = self._sorted_orders()
        page = orders[offset : offset + limit]
        return len(orders), [
            (self._header_row(order), self._line_rows(order["id"])) for order in page
        ]

    # -- helpers ----------------------------------------------------------

    def _maybe_fail(self) -> None:
        if self.read_error is not None:
            raise self.read_error

    def _sorted_orders(self) -> list[dict[str, Any]]:
        return sorted(
            self.orders.values(), key=lambda o: (o["order_date"], o["id"]), reverse=True
        )

    def _header_row(self, order: dict[str, Any]) -> dict[str, Any]:
        row = dict(order)
        user = self.users.get(order["user_id"])
        for field in ("id", "username", "name", "email", "address", "city", "postal_code"):
            row[f"owner_{field}"] = user[field] if user else None
        return row

    def _line_rows(self, order_id: int) -> list[dict[str, Any]]:
        rows = []
        for line in sorted(self.lines, key=lambda l: l["id"]):
            if line["order_id"] != order_id:
                continue
            row = dict(line)
            product = self.products.get(line["product_id"])
            row["catalog_product_id"] = product["id"] if product else None
            for field in ("name", "price", "image", "image_folder"):
                row[f"product_{field}"] = product[field] if product else None
            rows.append(row)
        return rows


class FakeChannel(BaseChannel):
    """Records every send; returns ``result`` or raises ``error``."""

    channel_type = "email"

    def __init__(self, result: DeliveryResult | None = None) -> None:
        self.result = result or DeliveryResult(success=True, message_id="msg-1")
        self.error: Exception | None = None
        self.sent: list[dict[str, Any]] = []

    async def send(
        self,
        recipient: str,
        subject: str,
        body: str,
        metadata: dict[str, Any] | None = None,
        attachments: list[EmailAttachment] | None = None,
    ) -> DeliveryResult:
        if self.error is not None:
            raise self.error
        self.sent.append(
            {
                "recipient": recipient,
                "subject": subject,
                "body": body,
                "metadata": metadata,
                "attachments": attachments or [],
            }
        )
        return self.result


@pytest.fixture()
def fake_db() -> FakeDatabase:
    db = FakeDatabase()
    db.add_user(42, name="Ana Buyer", email="ana@example.com")
    db.add_user(7, name="Other Buyer", email="other@example.com")
    db.add_user(1, name="Admin", email="admin@example.com", role="admin")
    db.add_product(7, "Ceramic mug", "14.99")
    db.add_product(8, "Linen tote", "9.50")
    return db


@pytest.fixture()
def fake_channel() -> FakeChannel:
    return FakeChannel()


@pytest.fixture()
def guard(fake_db: FakeDatabase) -> AuthorizationGuard:
    return AuthorizationGuard(user_lookup=fake_db.get_user)


@pytest.fixture()
def dispatcher(fake_channel: FakeChannel) -> NotificationDispatcher:
    return NotificationDispatcher(fake_channel, store_name="Storefront", currency_symbol="€")


@pytest.fixture()
def pipeline(fake_db: FakeDatabase, dispatcher: NotificationDispatcher) -> OrderPipeline:
    return OrderPipeline(
        fake_db,
        OrderTransactionCoordinator(fake_db),
        build_delivery_document,
        dispatcher,
    )


@pytest.fixture()
def query_service(
    fake_db: FakeDatabase, guard: AuthorizationGuard, dispatcher: NotificationDispatcher
) -> OrderQueryService:
    return OrderQueryService(
        fake_db, guard, build_delivery_document, dispatcher, default_page_size=2, max_page_size=5
    )
