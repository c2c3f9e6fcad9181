"""
Composed-order assembly.

Turns the joined rows read by ``DatabaseClient`` into a ``ComposedOrder``.
Two resolution rules meet here:

- display name: the name frozen on the line at write time wins; otherwise
  the current catalog name; otherwise a placeholder
- unit price: always the *current* catalog price (there is no stored line
  price), so subtotals follow catalog changes and are None once the product
  is gone
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from decimal import Decimal
from typing import Any

from apps.order_service.schemas import (
    UNNAMED_PRODUCT,
    ComposedOrder,
    OrderLineDetail,
    OwnerSummary,
    ProductSummary,
)
from libs.common import quantize_money


def _clean(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def resolve_display_name(stored_name: Any, catalog_name: Any) -> str:
    """
    Examples:
        >>> resolve_display_name("Gift box", "Box v2")
        'Gift box'
        >>> resolve_display_name("", "Box v2")
        'Box v2'
        >>> resolve_display_name(None, None)
        'Unnamed product'
    """
    return _clean(stored_name) or _clean(catalog_name) or UNNAMED_PRODUCT


def _owner_from_header(header: Mapping[str, Any]) -> OwnerSummary | None:
    if header.get("owner_id") is None:
        return None
    return OwnerSummary(
        id=header["owner_id"],
        username=_clean(header.get("owner_username")),
        name=_clean(header.get("owner_name")),
        email=_clean(header.get("owner_email")),
        address=_clean(header.get("owner_address")),
        city=_clean(header.get("owner_city")),
        postal_code=_clean(header.get("owner_postal_code")),
    )


def _line_from_row(row: Mapping[str, Any]) -> OrderLineDetail:
    product: ProductSummary | None = None
    unit_price: Decimal | None = None
    if row.get("catalog_product_id") is not None:
        raw_price = row.get("product_price")
        unit_price = quantize_money(Decimal(str(raw_price))) if raw_price is not None else None
        product = ProductSummary(
            id=row["catalog_product_id"],
            name=_clean(row.get("product_name")),
            price=unit_price,
            image=_clean(row.get("product_image")),
            image_folder=_clean(row.get("product_image_folder")),
        )

    quantity = int(row["quantity"])
    subtotal = quantize_money(unit_price * quantity) if unit_price is not None else None

    return OrderLineDetail(
        id=row["id"],
        product_id=row["product_id"],
        color=row["color"],
        quantity=quantity,
        display_name=resolve_display_name(
            row.get("display_name"), product.name if product else None
        ),
        stored_name=_clean(row.get("display_name")),
        unit_price=unit_price,
        subtotal=subtotal,
        product=product,
    )


def assemble_composed_order(
    header_row: Mapping[str, Any], line_rows: Sequence[Mapping[str, Any]]
) -> ComposedOrder:
    """
    Build a ComposedOrder from one header row and its line rows.

    Args:
        header_row: ``orders`` row with ``owner_*`` columns from the users join
        line_rows: ``order_lines`` rows with ``product_*`` columns from the
            products join, in line id order

    Returns:
        ComposedOrder
    """
    return ComposedOrder(
        id=header_row["id"],
        user_id=header_row["user_id"],
        order_date=header_row["order_date"],
        total=quantize_money(Decimal(str(header_row["total"]))),
        owner=_owner_from_header(header_row),
        lines=[_line_from_row(row) for row in line_rows],
    )


__all__ = ["assemble_composed_order", "resolve_display_name"]
