# Overview: Issues and validates signed, expiring session tokens.

"""
Session Token Service

Tokens are HS256 JWTs carrying {id, username, iat, exp}. Nothing is stored
server-side: a token is valid exactly when its signature checks out and its
expiry has not passed. Logout is therefore client-side only, and there is no
refresh; a new login is required after expiry.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt
from flask import current_app


class TokenError(Exception):
    """Raised when a token is missing, malformed, tampered with, or expired."""


@dataclass(frozen=True)
class TenantContext:
    """
    Identity of the authenticated caller.

    user_id is the owner id every tenant-scoped query filters on.
    """
    user_id: int
    username: str
    expires_at: datetime


def _secret() -> str:
    return current_app.config["JWT_SECRET"]


def _algorithm() -> str:
    return current_app.config.get("JWT_ALGORITHM", "HS256")


def issue_token(user_id: int, username: str, *, now: datetime | None = None) -> tuple[str, datetime]:
    """
    Sign a token for the user, valid for TOKEN_TTL_HOURS from `now`.

    Returns (token, expires_at) with expires_at as an aware UTC datetime.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    ttl = timedelta(hours=int(current_app.config.get("TOKEN_TTL_HOURS", 24)))
    expires_at = now + ttl
    payload = {
        "id": int(user_id),
        "username": username,
        "iat": int(now.timestamp()),
        "exp": int(expires_at.timestamp()),
    }
    token = jwt.encode(payload, _secret(), algorithm=_algorithm())
    return token, expires_at.replace(microsecond=0)


def validate_token(token: str | None) -> TenantContext:
    """Decode and verify a token. Raises TokenError on any failure."""
    if not token:
        raise TokenError("Authentication required")

    try:
        payload = jwt.decode(
            token,
            _secret(),
            algorithms=[_algorithm()],
            options={"require": ["exp", "iat", "id"]},
        )
    except jwt.ExpiredSignatureError:
        raise TokenError("Token expired")
    except jwt.InvalidTokenError:
        raise TokenError("Invalid token")

    user_id = payload.get("id")
    if isinstance(user_id, bool) or not isinstance(user_id, int):
        raise TokenError("Invalid token")

    return TenantContext(
        user_id=user_id,
        username=str(payload.get("username") or ""),
        expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
    )
