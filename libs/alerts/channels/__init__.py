"""Notification delivery channel implementations."""

from libs.alerts.channels.base import BaseChannel
from libs.alerts.channels.email import EmailChannel

__all__ = [
    "BaseChannel",
    "EmailChannel",
]
