"""Outbound notification channels, delivery results and PII masking."""

from __future__ import annotations

from libs.alerts.models import DeliveryResult, EmailAttachment
from libs.alerts.pii import mask_email, mask_recipient

__all__ = [
    "DeliveryResult",
    "EmailAttachment",
    "mask_email",
    "mask_recipient",
]
