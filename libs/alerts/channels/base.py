"""Abstract base class for notification delivery channels."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from libs.alerts.models import DeliveryResult, EmailAttachment


class BaseChannel(ABC):
    """Abstract base for delivery channels.

    Implementations are responsible for network I/O only; callers decide
    what a failed delivery means for their own state.
    """

    channel_type: str

    @abstractmethod
    async def send(
        self,
        recipient: str,
        subject: str,
        body: str,
        metadata: dict[str, Any] | None = None,
        attachments: list[EmailAttachment] | None = None,
    ) -> DeliveryResult:
        """Send a notification via the channel."""
        raise NotImplementedError


__all__ = ["BaseChannel"]
