"""Pydantic models shared by outbound notification channels."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class EmailAttachment(BaseModel):
    """In-memory attachment carried by an outbound email."""

    model_config = ConfigDict(frozen=True)

    filename: str
    content: bytes
    content_type: str = "application/octet-stream"


class DeliveryResult(BaseModel):
    """Result of a channel delivery attempt.

    Channels never raise for transport problems; they report them here so the
    caller can decide whether the failure is worth a manual retry.
    """

    success: bool
    message_id: str | None = None  # Provider message ID (SMTP Message-ID or SendGrid ID)
    error: str | None = None
    retryable: bool = True  # Whether failure is transient
    metadata: dict[str, str] = Field(default_factory=dict)


__all__ = [
    "EmailAttachment",
    "DeliveryResult",
]
