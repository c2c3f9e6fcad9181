"""Shared building blocks for storefront services."""

from libs.common.exceptions import ConfigurationError, StorefrontError
from libs.common.schemas import CENT, Money, TimestampSerializerMixin, quantize_money

__all__ = [
    "StorefrontError",
    "ConfigurationError",
    "CENT",
    "Money",
    "TimestampSerializerMixin",
    "quantize_money",
]
