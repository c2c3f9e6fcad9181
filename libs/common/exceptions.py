"""
Exception hierarchy for the storefront backend.

This module defines the base exceptions shared by every service, organized
in a hierarchy for precise error handling. Service-specific errors (e.g. the
order service's validation and authorization errors) inherit from
StorefrontError so callers can catch platform errors in one place.
"""


class StorefrontError(Exception):
    """
    Base exception for all storefront errors.

    Example:
        >>> try:
        ...     # storefront code
        ...     pass
        ... except StorefrontError as e:
        ...     logger.error(f"Storefront error: {e}")
    """

    pass


class ConfigurationError(StorefrontError):
    """
    Raised when required configuration or secrets are missing.

    This is used for services that require external configuration
    (database URL, JWT secret, SMTP credentials) that may not be available
    in all deployment environments.

    Example:
        >>> if not settings.jwt_secret:
        ...     raise ConfigurationError("JWT_SECRET not configured")
    """

    pass
