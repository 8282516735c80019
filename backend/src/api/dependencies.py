"""
API dependencies for FastAPI dependency injection.

Provides common dependencies like database sessions and authentication.
"""
from typing import Optional
from uuid import UUID

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jwt.exceptions import InvalidTokenError
from sqlalchemy.orm import Session

from src.api.middleware.error_handler import TooManyRequestsException, UnauthorizedException
from src.lib.db import get_db as get_db_session
from src.lib.jwt import get_admin_from_token
from src.lib.rate_limit import transaction_rate_limiter
from src.models.admins import Admin


# Re-export get_db for convenience
get_db = get_db_session


# HTTP Bearer token security scheme; missing headers are reported as 401 below
security = HTTPBearer(auto_error=False)


def get_current_admin(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> Admin:
    """
    Dependency to get the authenticated admin from the JWT token.

    Raises:
        UnauthorizedException: 401 if the token is missing, invalid, or the admin is gone
    """
    if credentials is None:
        raise UnauthorizedException("Not authenticated")

    try:
        admin_id, _ = get_admin_from_token(credentials.credentials)
        admin = db.get(Admin, UUID(admin_id))
    except (InvalidTokenError, ValueError) as exc:
        raise UnauthorizedException(f"Could not validate credentials: {exc}") from exc

    if admin is None:
        raise UnauthorizedException("Admin not found")

    return admin


def enforce_transaction_rate_limit(admin: Admin = Depends(get_current_admin)) -> Admin:
    """Throttle repeated settlement submissions from one terminal login."""
    if not transaction_rate_limiter.is_allowed(str(admin.id)):
        raise TooManyRequestsException(
            "Too many transactions, please wait a minute",
            retry_after=int(transaction_rate_limiter.window_seconds),
        )
    return admin
