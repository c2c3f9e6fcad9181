"""
Authorization guard for order access.

One guard instance lives in the AppContext and every read and write path
asks it, so owner/admin rules are decided in a single place. The guard only
answers yes or no; callers raise 403 on a denied existing resource and 404
when the resource is missing, so the two never get swapped.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from apps.order_service.exceptions import OrderAccessDeniedError

logger = logging.getLogger(__name__)

ELEVATED_ROLE = "admin"

UserLookup = Callable[[int], Mapping[str, Any] | None]


@dataclass(frozen=True)
class ActingIdentity:
    """Authenticated caller, as established from the bearer token."""

    user_id: int


class AuthorizationGuard:
    """
    Decides whether an acting identity may see or act on an owner's orders.

    Access is granted to the owner itself or to any identity whose stored
    role is elevated. Role lookups go through ``user_lookup``; a lookup that
    fails or finds nobody resolves to deny.

    Example:
        >>> guard = AuthorizationGuard(user_lookup=db.get_user)
        >>> guard.can_access_order(ActingIdentity(user_id=42), owner_id=42)
        True
    """

    def __init__(self, user_lookup: UserLookup) -> None:
        self._user_lookup = user_lookup

    def is_elevated(self, identity: ActingIdentity | None) -> bool:
        if identity is None:
            return False
        try:
            user = self._user_lookup(identity.user_id)
        except Exception:
            logger.warning(
                "Role lookup failed; denying elevated access",
                extra={"user_id": identity.user_id},
                exc_info=True,
            )
            return False

        if not user:
            logger.info("Role lookup found no user", extra={"user_id": identity.user_id})
            return False

        role = user.get("role")
        return isinstance(role, str) and role.strip().lower() == ELEVATED_ROLE

    def can_access_order(self, identity: ActingIdentity | None, owner_id: int) -> bool:
        """Return True iff ``identity`` owns the order or holds the elevated role."""
        if identity is None:
            return False
        if identity.user_id == owner_id:
            return True
        return self.is_elevated(identity)

    def require_order_access(
        self, identity: ActingIdentity | None, owner_id: int, *, order_id: int | None = None
    ) -> None:
        """Raise OrderAccessDeniedError unless ``can_access_order`` grants access."""
        if self.can_access_order(identity, owner_id):
            return
        logger.info(
            "Order access denied",
            extra={
                "user_id": identity.user_id if identity else None,
                "owner_id": owner_id,
                "order_id": order_id,
            },
        )
        raise OrderAccessDeniedError("Not authorized to access these orders")

    def require_elevated(self, identity: ActingIdentity | None) -> None:
        if self.is_elevated(identity):
            return
        logger.info(
            "Elevated access denied",
            extra={"user_id": identity.user_id if identity else None},
        )
        raise OrderAccessDeniedError("Administrator role required")


__all__ = ["ActingIdentity", "AuthorizationGuard", "ELEVATED_ROLE", "UserLookup"]
