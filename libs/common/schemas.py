"""Shared Pydantic schema utilities and money helpers.

Amounts are carried as ``Decimal`` quantized to cents and serialized as
JSON numbers, so ``29.98`` goes out as ``29.98`` rather than ``"29.98"``.
"""

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Annotated

from pydantic import PlainSerializer, field_serializer

CENT = Decimal("0.01")


def quantize_money(value: Decimal) -> Decimal:
    """Round an amount to two decimal places (half up).

    Example:
        >>> quantize_money(Decimal("14.985"))
        Decimal('14.99')
    """
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


Money = Annotated[
    Decimal,
    PlainSerializer(lambda value: float(quantize_money(value)), return_type=float, when_used="json"),
]


class TimestampSerializerMixin:
    """
    Mixin serializing a ``timestamp`` field with a ``Z`` suffix.

    Note: Mixin must be listed BEFORE BaseModel in inheritance order.
    """

    @field_serializer("timestamp")
    def serialize_timestamp(self, value: datetime) -> str:
        return value.isoformat().replace("+00:00", "Z")
