"""JWT access tokens for the POS terminal.

A token is issued at login and names the shop admin working the till: `sub` is
the admin's UUID, `username` their login name. Tokens are HS256-signed with the
configured secret, carry the POS issuer, and last one shop day by default.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from jwt.exceptions import InvalidTokenError

from src.lib.settings import settings


REQUIRED_CLAIMS = ["exp", "iat", "iss", "sub"]


def create_access_token(
    admin_id: str,
    username: str,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Sign a token for `admin_id`.

    Example:
        >>> token = create_access_token("123e4567-e89b-12d3-a456-426614174000", "frontdesk")
    """
    issued_at = datetime.now(timezone.utc)
    lifetime = expires_delta if expires_delta is not None else timedelta(
        minutes=settings.jwt_expiration_minutes
    )
    claims = {
        "iss": settings.jwt_issuer,
        "sub": admin_id,
        "username": username,
        "iat": issued_at,
        "exp": issued_at + lifetime,
    }
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_token(token: str) -> dict:
    """Decode `token`, checking signature, expiry and issuer.

    Raises:
        InvalidTokenError: any failure, including a missing standard claim
    """
    return jwt.decode(
        token,
        settings.jwt_secret,
        algorithms=[settings.jwt_algorithm],
        issuer=settings.jwt_issuer,
        options={"require": REQUIRED_CLAIMS},
    )


def get_admin_from_token(token: str) -> tuple[str, str]:
    """Return `(admin_id, username)` from a valid token.

    Raises:
        InvalidTokenError: the token is invalid or has no username claim
    """
    claims = verify_token(token)
    if "username" not in claims:
        raise InvalidTokenError("Missing claim: username")
    return claims["sub"], claims["username"]
