"""PII masking for notification logs.

Raw recipient addresses go to the transport only; logs and error strings
carry the masked form.
"""


def mask_email(email: str) -> str:
    """Mask email showing ONLY last 4 chars: user@domain.com -> ***.com"""
    if len(email) >= 4:
        return f"***{email[-4:]}"
    return "***"


def mask_recipient(value: str, channel_type: str = "email") -> str:
    """Mask recipient based on channel type."""
    if channel_type == "email":
        return mask_email(value)
    return "***"


__all__ = [
    "mask_email",
    "mask_recipient",
]
