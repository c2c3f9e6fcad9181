"""
Order submission validation.

Turns the raw JSON body of ``POST /orders`` into a frozen ``ValidatedOrder``
before any transaction opens. Checks run in a fixed order and stop at the
first failure:

1. ``total`` is a positive number
2. the line collection is a non-empty list
3. for each line, in request order:
   a. product id is a positive integer naming an existing product
   b. quantity is a positive integer
   c. color is a non-empty string
4. the optional order date parses as an ISO date

Field names from the storefront's legacy clients (``idprod``, ``cant``,
``nombre``, ``lineas``, ``fecha``) are accepted next to the English ones.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from pydantic import ValidationError

from apps.order_service.exceptions import OrderValidationError
from apps.order_service.schemas import ValidatedOrder, ValidatedOrderLine
from libs.common import quantize_money

logger = logging.getLogger(__name__)

ProductExists = Callable[[int], bool]

MSG_INVALID_BODY = "Request body must be a JSON object"
MSG_INVALID_TOTAL = "Order total must be greater than 0"
MSG_EMPTY_LINES = "Order must contain at least one product"
MSG_INVALID_DATE = "Order date must be an ISO date (YYYY-MM-DD)"
REASON_PRODUCT = "invalid product reference"
REASON_QUANTITY = "invalid quantity"
REASON_COLOR = "missing color"
REASON_LINE_SHAPE = "line item must be an object"

# (canonical, legacy) field names
_TOTAL_KEYS = ("total",)
_LINES_KEYS = ("lines", "lineas")
_DATE_KEYS = ("date", "fecha")
_PRODUCT_KEYS = ("product_id", "idprod")
_QUANTITY_KEYS = ("quantity", "cant")
_COLOR_KEYS = ("color",)
_NAME_KEYS = ("display_name", "nombre")

_MAX_COLOR_LENGTH = 50


def _first_present(data: Mapping[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return None


def _positive_int(value: Any) -> int | None:
    """Coerce ``value`` to a strictly positive int, or return None.

    Integral floats and digit strings are accepted; booleans are not.

    Examples:
        >>> _positive_int("7"), _positive_int(2.0), _positive_int(True), _positive_int(0)
        (7, 2, None, None)
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        number = value
    elif isinstance(value, float) and value.is_integer():
        number = int(value)
    elif isinstance(value, str) and value.strip().isascii() and value.strip().isdigit():
        number = int(value.strip())
    else:
        return None
    return number if number > 0 else None


def _positive_amount(value: Any) -> Decimal | None:
    if isinstance(value, bool) or value is None:
        return None
    if not isinstance(value, int | float | str | Decimal):
        return None
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        return None
    if not amount.is_finite():
        return None
    amount = quantize_money(amount)
    return amount if amount > 0 else None


def _parse_order_date(value: Any) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, str):
        text = value.strip()
        try:
            return date.fromisoformat(text)
        except ValueError:
            pass
        try:
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
        except ValueError:
            pass
    raise OrderValidationError(MSG_INVALID_DATE)


def _line_error(index: int, reason: str) -> OrderValidationError:
    return OrderValidationError(f"Line {index}: {reason}", line_index=index)


def _validate_line(index: int, raw: Any, product_exists: ProductExists) -> ValidatedOrderLine:
    if not isinstance(raw, Mapping):
        raise _line_error(index, REASON_LINE_SHAPE)

    product_id = _positive_int(_first_present(raw, _PRODUCT_KEYS))
    if product_id is None or not product_exists(product_id):
        raise _line_error(index, REASON_PRODUCT)

    quantity = _positive_int(_first_present(raw, _QUANTITY_KEYS))
    if quantity is None:
        raise _line_error(index, REASON_QUANTITY)

    color = _first_present(raw, _COLOR_KEYS)
    if not isinstance(color, str) or not color.strip():
        raise _line_error(index, REASON_COLOR)
    color = color.strip()[:_MAX_COLOR_LENGTH]

    name = _first_present(raw, _NAME_KEYS)
    display_name = name.strip() if isinstance(name, str) and name.strip() else None

    return ValidatedOrderLine(
        product_id=product_id,
        quantity=quantity,
        color=color,
        display_name=display_name,
    )


def validate_order(payload: Any, product_exists: ProductExists) -> ValidatedOrder:
    """
    Validate an order submission.

    Args:
        payload: Decoded JSON request body (untrusted)
        product_exists: Catalog lookup, called once per line that reaches
            the product check

    Returns:
        ValidatedOrder: Frozen, typed submission

    Raises:
        OrderValidationError: On the first failing check. Line errors carry
            the 1-based ``line_index``.

    Example:
        >>> validated = validate_order(
        ...     {"total": 29.98, "lines": [{"idprod": 7, "cant": 2, "color": "black"}]},
        ...     product_exists=lambda product_id: product_id == 7,
        ... )
        >>> validated.total, validated.lines[0].quantity
        (Decimal('29.98'), 2)
    """
    if not isinstance(payload, Mapping):
        raise OrderValidationError(MSG_INVALID_BODY)

    total = _positive_amount(_first_present(payload, _TOTAL_KEYS))
    if total is None:
        raise OrderValidationError(MSG_INVALID_TOTAL)

    raw_lines = _first_present(payload, _LINES_KEYS)
    if not isinstance(raw_lines, list) or not raw_lines:
        raise OrderValidationError(MSG_EMPTY_LINES)

    lines = [
        _validate_line(index, raw, product_exists) for index, raw in enumerate(raw_lines, start=1)
    ]

    order_date = _parse_order_date(_first_present(payload, _DATE_KEYS))

    try:
        validated = ValidatedOrder(total=total, order_date=order_date, lines=tuple(lines))
    except ValidationError as exc:
        raise OrderValidationError(str(exc)) from exc

    logger.debug(
        "Order submission validated",
        extra={"line_count": len(validated.lines), "total": str(validated.total)},
    )
    return validated


__all__ = [
    "ProductExists",
    "validate_order",
    "MSG_EMPTY_LINES",
    "MSG_INVALID_TOTAL",
    "MSG_INVALID_DATE",
    "REASON_PRODUCT",
    "REASON_QUANTITY",
    "REASON_COLOR",
]
