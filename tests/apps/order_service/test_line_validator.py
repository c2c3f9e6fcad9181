"""Tests for order submission validation."""

from datetime import date
from decimal import Decimal

import pytest
from pydantic import ValidationError

from apps.order_service.exceptions import OrderValidationError
from apps.order_service.line_validator import (
    MSG_EMPTY_LINES,
    MSG_INVALID_DATE,
    MSG_INVALID_TOTAL,
    validate_order,
)
from apps.order_service.schemas import ValidatedOrder


class _Catalog:
    def __init__(self, *product_ids: int) -> None:
        self.product_ids = set(product_ids)
        self.calls: list[int] = []

    def __call__(self, product_id: int) -> bool:
        self.calls.append(product_id)
        return product_id in self.product_ids


def _line(product_id=7, quantity=2, color="black", **extra):
    return {"product_id": product_id, "quantity": quantity, "color": color, **extra}


class TestValidOrders:
    def test_single_line(self):
        validated = validate_order({"total": 29.98, "lines": [_line()]}, _Catalog(7))

        assert isinstance(validated, ValidatedOrder)
        assert validated.total == Decimal("29.98")
        assert validated.order_date is None
        assert len(validated.lines) == 1
        line = validated.lines[0]
        assert (line.product_id, line.quantity, line.color, line.display_name) == (
            7,
            2,
            "black",
            None,
        )

    def test_legacy_field_names(self):
        validated = validate_order(
            {
                "total": "19.00",
                "lineas": [{"idprod": "8", "cant": 2.0, "color": " red ", "nombre": "Tote"}],
                "fecha": "2026-03-02",
            },
            _Catalog(8),
        )

        line = validated.lines[0]
        assert line.product_id == 8
        assert line.quantity == 2
        assert line.color == "red"
        assert line.display_name == "Tote"
        assert validated.order_date == date(2026, 3, 2)

    def test_datetime_string_is_reduced_to_date(self):
        validated = validate_order(
            {"total": 10, "lines": [_line()], "date": "2026-03-02T18:45:00Z"}, _Catalog(7)
        )
        assert validated.order_date == date(2026, 3, 2)

    def test_blank_display_name_is_dropped(self):
        validated = validate_order(
            {"total": 10, "lines": [_line(display_name="   ")]}, _Catalog(7)
        )
        assert validated.lines[0].display_name is None

    def test_long_color_is_truncated(self):
        validated = validate_order({"total": 10, "lines": [_line(color="x" * 80)]}, _Catalog(7))
        assert len(validated.lines[0].color) == 50

    def test_total_is_rounded_to_cents(self):
        validated = validate_order({"total": "10.005", "lines": [_line()]}, _Catalog(7))
        assert validated.total == Decimal("10.01")

    def test_validated_order_is_frozen(self):
        validated = validate_order({"total": 10, "lines": [_line()]}, _Catalog(7))
        with pytest.raises(ValidationError):
            validated.total = Decimal("1")


class TestOrderLevelRejections:
    @pytest.mark.parametrize("payload", [None, [], "order", 17])
    def test_body_must_be_an_object(self, payload):
        with pytest.raises(OrderValidationError) as exc_info:
            validate_order(payload, _Catalog(7))
        assert exc_info.value.line_index is None

    @pytest.mark.parametrize("total", [None, 0, -5, "abc", True, "0.001", "NaN", [10]])
    def test_invalid_total(self, total):
        catalog = _Catalog(7)
        with pytest.raises(OrderValidationError, match=MSG_INVALID_TOTAL):
            validate_order({"total": total, "lines": [_line()]}, catalog)
        assert catalog.calls == []

    @pytest.mark.parametrize("lines", [None, [], {}, "7"])
    def test_empty_or_missing_lines(self, lines):
        with pytest.raises(OrderValidationError, match=MSG_EMPTY_LINES):
            validate_order({"total": 10, "lines": lines}, _Catalog(7))

    def test_total_checked_before_lines(self):
        with pytest.raises(OrderValidationError, match=MSG_INVALID_TOTAL):
            validate_order({"total": 0, "lines": []}, _Catalog(7))

    def test_invalid_date(self):
        with pytest.raises(OrderValidationError, match="ISO date") as exc_info:
            validate_order({"total": 10, "lines": [_line()], "date": "02/03/2026"}, _Catalog(7))
        assert exc_info.value.message == MSG_INVALID_DATE

    def test_non_string_date_is_rejected(self):
        with pytest.raises(OrderValidationError, match="ISO date"):
            validate_order({"total": 10, "lines": [_line()], "date": 20260302}, _Catalog(7))


class TestLineRejections:
    def test_first_failing_line_stops_validation(self):
        catalog = _Catalog(7, 8)
        payload = {
            "total": 30,
            "lines": [_line(7), _line(8, quantity=0), _line(9)],
        }

        with pytest.raises(OrderValidationError) as exc_info:
            validate_order(payload, catalog)

        assert exc_info.value.message == "Line 2: invalid quantity"
        assert exc_info.value.line_index == 2
        assert exc_info.value.to_detail() == {"message": "Line 2: invalid quantity", "line": 2}
        # line 3 is never looked up
        assert catalog.calls == [7, 8]

    def test_unknown_product(self):
        with pytest.raises(OrderValidationError, match="Line 1: invalid product reference"):
            validate_order({"total": 10, "lines": [_line(999)]}, _Catalog(7))

    @pytest.mark.parametrize("product_id", [None, 0, -1, "abc", True, 7.5, "٧"])
    def test_malformed_product_reference_skips_lookup(self, product_id):
        catalog = _Catalog(7)
        with pytest.raises(OrderValidationError, match="invalid product reference"):
            validate_order({"total": 10, "lines": [_line(product_id)]}, catalog)
        assert catalog.calls == []

    def test_product_checked_before_quantity(self):
        with pytest.raises(OrderValidationError, match="invalid product reference"):
            validate_order({"total": 10, "lines": [_line(999, quantity=0)]}, _Catalog(7))

    @pytest.mark.parametrize("quantity", [None, 0, -2, 1.5, "two", False])
    def test_invalid_quantity(self, quantity):
        with pytest.raises(OrderValidationError, match="Line 1: invalid quantity"):
            validate_order({"total": 10, "lines": [_line(quantity=quantity)]}, _Catalog(7))

    @pytest.mark.parametrize("color", [None, "", "   ", 5])
    def test_missing_color(self, color):
        with pytest.raises(OrderValidationError, match="Line 1: missing color"):
            validate_order({"total": 10, "lines": [_line(color=color)]}, _Catalog(7))

    def test_line_must_be_an_object(self):
        with pytest.raises(OrderValidationError, match="Line 2: line item must be an object"):
            validate_order({"total": 10, "lines": [_line(), "7"]}, _Catalog(7))
