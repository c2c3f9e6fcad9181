"""Bearer-token authentication for order endpoints.

Tokens are issued by the account service and signed with the shared
``JWT_SECRET``. The acting user id is read from the ``userId`` claim
(``sub`` is accepted as well).
"""

from __future__ import annotations

import logging
from typing import Any

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from apps.order_service.app_context import AppContext
from apps.order_service.authorization import ActingIdentity
from apps.order_service.dependencies import get_context

logger = logging.getLogger(__name__)

_bearer = HTTPBearer(auto_error=False)

_USER_ID_CLAIMS = ("userId", "sub")


def _unauthorized(message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"message": message},
        headers={"WWW-Authenticate": "Bearer"},
    )


def _user_id_from_claims(claims: dict[str, Any]) -> int | None:
    for claim in _USER_ID_CLAIMS:
        value = claims.get(claim)
        if isinstance(value, bool) or value is None:
            continue
        if isinstance(value, int):
            return value if value > 0 else None
        if isinstance(value, str) and value.isascii() and value.isdigit() and int(value) > 0:
            return int(value)
    return None


def decode_identity(token: str, secret: str, algorithm: str = "HS256") -> ActingIdentity:
    """
    Verify ``token`` and return the acting identity.

    Raises:
        HTTPException: 401 for a missing secret, a bad signature, an expired
            token or a token without a usable user id claim
    """
    if not secret:
        logger.error("JWT secret not configured; rejecting bearer token")
        raise _unauthorized("Authentication is not available")

    try:
        claims = jwt.decode(token, secret, algorithms=[algorithm])
    except jwt.ExpiredSignatureError as exc:
        raise _unauthorized("Token expired") from exc
    except jwt.PyJWTError as exc:
        logger.info("Bearer token rejected", extra={"error_type": type(exc).__name__})
        raise _unauthorized("Invalid token") from exc

    user_id = _user_id_from_claims(claims)
    if user_id is None:
        raise _unauthorized("Invalid token")
    return ActingIdentity(user_id=user_id)


async def get_acting_identity(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
    ctx: AppContext = Depends(get_context),
) -> ActingIdentity:
    """FastAPI dependency: 401 unless a valid bearer token is present."""
    if credentials is None or not credentials.credentials:
        raise _unauthorized("Authentication required")
    return decode_identity(credentials.credentials, ctx.jwt_secret, ctx.jwt_algorithm)


__all__ = ["decode_identity", "get_acting_identity"]
