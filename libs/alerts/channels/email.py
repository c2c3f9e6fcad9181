"""Email delivery channel with SMTP primary and SendGrid fallback."""

from __future__ import annotations

import base64
import logging
from email.message import EmailMessage
from email.utils import make_msgid
from typing import Any

import aiosmtplib
import httpx

from libs.alerts.channels.base import BaseChannel
from libs.alerts.models import DeliveryResult, EmailAttachment
from libs.alerts.pii import mask_recipient

logger = logging.getLogger(__name__)

SENDGRID_URL = "https://api.sendgrid.com/v3/mail/send"


class EmailChannel(BaseChannel):
    """Email channel that prefers SMTP and falls back to SendGrid.

    Attachments are passed in memory, so generated documents never touch
    the filesystem.
    """

    channel_type = "email"
    TIMEOUT = 10  # seconds

    def __init__(
        self,
        *,
        smtp_host: str | None = None,
        smtp_port: int | str | None = None,
        smtp_user: str | None = None,
        smtp_password: str | None = None,
        sendgrid_api_key: str | None = None,
        from_email: str | None = None,
    ) -> None:
        self.smtp_host = smtp_host or "localhost"

        try:
            self.smtp_port = int(smtp_port or 587)
        except (TypeError, ValueError):
            self.smtp_port = 587

        self.smtp_user = smtp_user
        self.smtp_password = smtp_password
        self.sendgrid_api_key = sendgrid_api_key

        # Prefer explicit from_email, then SMTP user.
        self.from_email = from_email or self.smtp_user

    @classmethod
    def from_settings(cls, settings: Any) -> EmailChannel:
        """Build a channel from ``config.settings.Settings``."""
        return cls(
            smtp_host=settings.smtp_host,
            smtp_port=settings.smtp_port,
            smtp_user=settings.smtp_user or None,
            smtp_password=settings.smtp_password.get_secret_value() or None,
            sendgrid_api_key=settings.sendgrid_api_key.get_secret_value() or None,
            from_email=settings.mail_from or None,
        )

    def _sanitize_error(self, message: str, recipient: str) -> str:
        """Remove raw email addresses from error messages."""
        sanitized = message or ""
        if recipient:
            sanitized = sanitized.replace(recipient, mask_recipient(recipient, self.channel_type))
        if self.from_email:
            sanitized = sanitized.replace(
                self.from_email,
                mask_recipient(self.from_email, self.channel_type),
            )
        return sanitized

    async def send(
        self,
        recipient: str,
        subject: str,
        body: str,
        metadata: dict[str, Any] | None = None,
        attachments: list[EmailAttachment] | None = None,
    ) -> DeliveryResult:
        masked = mask_recipient(recipient, self.channel_type)
        logger.info(
            "email_send_attempt",
            extra={"recipient": masked, "attachments": len(attachments or []), **(metadata or {})},
        )

        if not self.from_email:
            return DeliveryResult(
                success=False,
                error="from_email not configured",
                retryable=False,
            )

        smtp_result = await self._send_smtp(recipient, subject, body, attachments)
        if smtp_result.success:
            logger.info(
                "email_smtp_sent",
                extra={"recipient": masked, "message_id": smtp_result.message_id},
            )
            return smtp_result

        logger.warning(
            "email_smtp_failed_fallback_sendgrid",
            extra={
                "recipient": masked,
                "retryable": smtp_result.retryable,
                "error": smtp_result.error,
            },
        )

        if not self.sendgrid_api_key:
            return DeliveryResult(
                success=False,
                error="SMTP failed and SendGrid not configured",
                retryable=smtp_result.retryable,
                metadata=smtp_result.metadata,
            )

        sendgrid_result = await self._send_sendgrid(recipient, subject, body, attachments)
        if sendgrid_result.success:
            logger.info(
                "email_sendgrid_sent",
                extra={"recipient": masked, "message_id": sendgrid_result.message_id},
            )
        else:
            logger.error(
                "email_sendgrid_failed",
                extra={
                    "recipient": masked,
                    "error": sendgrid_result.error,
                    "retryable": sendgrid_result.retryable,
                },
            )

        return sendgrid_result

    def _build_message(
        self,
        recipient: str,
        subject: str,
        body: str,
        attachments: list[EmailAttachment] | None = None,
    ) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.from_email
        message["To"] = recipient
        message["Subject"] = subject
        message["Message-ID"] = make_msgid()
        message.set_content(body)

        for attachment in attachments or []:
            maintype, _, subtype = attachment.content_type.partition("/")
            message.add_attachment(
                attachment.content,
                maintype=maintype,
                subtype=subtype or "octet-stream",
                filename=attachment.filename,
            )

        return message

    async def _send_smtp(
        self,
        recipient: str,
        subject: str,
        body: str,
        attachments: list[EmailAttachment] | None = None,
    ) -> DeliveryResult:
        message = self._build_message(recipient, subject, body, attachments)
        masked = mask_recipient(recipient, self.channel_type)

        try:
            # Port 587 uses STARTTLS, port 465 uses implicit TLS
            use_tls = self.smtp_port == 465
            start_tls = self.smtp_port == 587

            async with aiosmtplib.SMTP(
                hostname=self.smtp_host,
                port=self.smtp_port,
                timeout=self.TIMEOUT,
                use_tls=use_tls,
                start_tls=start_tls,
            ) as smtp:
                if self.smtp_user and self.smtp_password:
                    await smtp.login(self.smtp_user, self.smtp_password)
                await smtp.send_message(message)
                return DeliveryResult(success=True, message_id=message["Message-ID"])

        except aiosmtplib.SMTPAuthenticationError as exc:
            logger.error("email_smtp_auth_error", extra={"recipient": masked})
            return DeliveryResult(
                success=False, error=self._sanitize_error(str(exc), recipient), retryable=False
            )

        except (aiosmtplib.SMTPConnectError, TimeoutError) as exc:
            logger.error("email_smtp_connection_error", extra={"recipient": masked})
            return DeliveryResult(
                success=False, error=self._sanitize_error(str(exc), recipient), retryable=True
            )

        except aiosmtplib.SMTPRecipientsRefused as exc:
            logger.error(
                "email_smtp_recipients_refused",
                extra={"recipient": masked, "retryable": False},
            )
            return DeliveryResult(
                success=False, error=self._sanitize_error(str(exc), recipient), retryable=False
            )

        except aiosmtplib.SMTPResponseException as exc:
            # RFC 5321: 4xx transient, 5xx permanent
            retryable = 400 <= exc.code < 500
            logger.error(
                "email_smtp_response_error",
                extra={"recipient": masked, "status": exc.code, "retryable": retryable},
            )
            return DeliveryResult(
                success=False, error=self._sanitize_error(str(exc), recipient), retryable=retryable
            )

        except (aiosmtplib.SMTPException, OSError) as exc:
            logger.error("email_smtp_unknown_error", extra={"recipient": masked})
            return DeliveryResult(
                success=False, error=self._sanitize_error(str(exc), recipient), retryable=True
            )

    def _sendgrid_payload(
        self,
        recipient: str,
        subject: str,
        body: str,
        attachments: list[EmailAttachment] | None,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "personalizations": [{"to": [{"email": recipient}]}],
            "from": {"email": self.from_email},
            "subject": subject,
            "content": [{"type": "text/plain", "value": body}],
        }
        if attachments:
            payload["attachments"] = [
                {
                    "content": base64.b64encode(attachment.content).decode("ascii"),
                    "filename": attachment.filename,
                    "type": attachment.content_type,
                    "disposition": "attachment",
                }
                for attachment in attachments
            ]
        return payload

    async def _send_sendgrid(
        self,
        recipient: str,
        subject: str,
        body: str,
        attachments: list[EmailAttachment] | None = None,
    ) -> DeliveryResult:
        masked = mask_recipient(recipient, self.channel_type)
        headers = {
            "Authorization": f"Bearer {self.sendgrid_api_key}",
            "Content-Type": "application/json",
        }
        payload = self._sendgrid_payload(recipient, subject, body, attachments)

        try:
            async with httpx.AsyncClient(timeout=self.TIMEOUT) as client:
                response = await client.post(SENDGRID_URL, headers=headers, json=payload)
        except httpx.TimeoutException:
            logger.error("email_sendgrid_timeout", extra={"recipient": masked})
            return DeliveryResult(success=False, error="timeout", retryable=True)
        except httpx.RequestError as exc:
            sanitized = self._sanitize_error(str(exc), recipient)
            logger.error(
                "email_sendgrid_connection_error",
                extra={"recipient": masked, "error": sanitized},
            )
            return DeliveryResult(success=False, error=sanitized, retryable=True)

        metadata: dict[str, str] = {}
        retry_after = response.headers.get("retry-after")
        if retry_after:
            metadata["retry_after"] = retry_after

        if response.status_code == 202:
            msg_id = response.headers.get("x-message-id")
            return DeliveryResult(success=True, message_id=msg_id, metadata=metadata)

        retryable = response.status_code == 429 or response.status_code >= 500
        return DeliveryResult(
            success=False,
            error=f"SendGrid HTTP {response.status_code}",
            retryable=retryable,
            metadata=metadata,
        )


__all__ = ["EmailChannel", "SENDGRID_URL"]
