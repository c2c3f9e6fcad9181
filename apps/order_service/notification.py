"""
Delivery-note notification dispatcher.

Sends the delivery note for a committed order to the owner's email address
through a ``BaseChannel`` (SMTP with SendGrid fallback in production).
The message body is a plain-text summary built from the same composed order
as the PDF, independently of it. Dispatch never reads or writes order state.
"""

from __future__ import annotations

import logging

from apps.order_service.document_builder import PLACEHOLDER, format_amount, format_date
from apps.order_service.exceptions import MissingRecipientError
from apps.order_service.schemas import ComposedOrder
from libs.alerts.channels.base import BaseChannel
from libs.alerts.models import DeliveryResult, EmailAttachment
from libs.alerts.pii import mask_email

logger = logging.getLogger(__name__)

PDF_CONTENT_TYPE = "application/pdf"


def attachment_filename(order_id: int) -> str:
    return f"DeliveryNote_{order_id}.pdf"


def recipient_email(order: ComposedOrder) -> str:
    """Return the owner's email or raise MissingRecipientError."""
    email = order.owner.email.strip() if order.owner and order.owner.email else ""
    if not email:
        raise MissingRecipientError(
            "The order owner has no email address", order_id=order.id
        )
    return email


class NotificationDispatcher:
    """
    Emails delivery notes.

    Args:
        channel: Outbound transport
        store_name: Used in the subject and signature
        currency_symbol: Appended to amounts in the body

    Example:
        >>> dispatcher = NotificationDispatcher(EmailChannel.from_settings(settings))
        >>> result = await dispatcher.dispatch(order, pdf_bytes)
        >>> result.success
        True
    """

    def __init__(
        self, channel: BaseChannel, *, store_name: str = "Storefront", currency_symbol: str = "€"
    ) -> None:
        self._channel = channel
        self.store_name = store_name
        self.currency_symbol = currency_symbol

    def subject_for(self, order: ComposedOrder) -> str:
        return f"Delivery note for order #{order.id} - {self.store_name}"

    def render_body(self, order: ComposedOrder) -> str:
        owner = order.owner
        name = owner.name if owner and owner.name else PLACEHOLDER
        address = owner.address if owner and owner.address else PLACEHOLDER
        city_parts = [part for part in (owner.city, owner.postal_code) if part] if owner else []
        city = " ".join(city_parts) if city_parts else PLACEHOLDER
        email = owner.email if owner and owner.email else PLACEHOLDER

        greeting = f"Hello {owner.name}," if owner and owner.name else "Hello,"

        return "\n".join(
            [
                greeting,
                "",
                f"Thank you for your order. The delivery note for order #{order.id} is attached.",
                "",
                "Order details",
                f"  Order: #{order.id}",
                f"  Date: {format_date(order.order_date)}",
                f"  Total: {format_amount(order.total, self.currency_symbol)}",
                "",
                "Delivery address",
                f"  Name: {name}",
                f"  Address: {address}",
                f"  City: {city}",
                f"  Email: {email}",
                "",
                self.store_name,
            ]
        )

    async def dispatch(self, order: ComposedOrder, document: bytes) -> DeliveryResult:
        """
        Send the delivery note for ``order`` with ``document`` attached.

        Raises:
            MissingRecipientError: Owner has no email; raised before any
                transport call

        Returns:
            DeliveryResult from the channel. Transport problems are reported
            here, never raised.
        """
        email = recipient_email(order)
        attachment = EmailAttachment(
            filename=attachment_filename(order.id),
            content=document,
            content_type=PDF_CONTENT_TYPE,
        )

        result = await self._channel.send(
            email,
            self.subject_for(order),
            self.render_body(order),
            metadata={"order_id": order.id},
            attachments=[attachment],
        )

        log_extra = {
            "order_id": order.id,
            "recipient": mask_email(email),
            "success": result.success,
            "retryable": result.retryable,
            "message_id": result.message_id,
        }
        if result.success:
            logger.info("Delivery note sent", extra=log_extra)
        else:
            logger.warning("Delivery note not sent", extra={**log_extra, "error": result.error})
        return result


__all__ = [
    "NotificationDispatcher",
    "PDF_CONTENT_TYPE",
    "attachment_filename",
    "recipient_email",
]
