"""Authentication service for shop admins.

Handles the login flow:
1. Look up the admin by username
2. Check the password against the stored bcrypt hash
3. Issue a JWT for the POS terminal

Unknown usernames and wrong passwords produce the same error.
"""
from datetime import datetime, timezone
from typing import Optional

import bcrypt
from sqlalchemy import select
from sqlalchemy.orm import Session

from src.api.middleware.error_handler import (
    ConflictException,
    TooManyRequestsException,
    UnauthorizedException,
)
from src.lib.jwt import create_access_token
from src.lib.logging import get_logger
from src.lib.rate_limit import RateLimiter, login_rate_limiter
from src.models.admins import Admin


logger = get_logger(__name__)

BCRYPT_ROUNDS = 12


def hash_password(password: str) -> str:
    """Hash a password with bcrypt."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Check a password against a bcrypt hash; malformed hashes never match."""
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


class AuthService:
    """Username/password login for POS admins."""

    def __init__(self, session: Session, rate_limiter: Optional[RateLimiter] = None):
        """Initialize auth service with database session.

        Args:
            session: SQLAlchemy session for database operations
            rate_limiter: Limiter for login attempts (global one by default)
        """
        self.session = session
        self.rate_limiter = rate_limiter or login_rate_limiter

    def login(self, username: str, password: str) -> dict:
        """Verify credentials and issue a JWT.

        Returns:
            {"token": "...", "admin_id": "uuid", "username": "frontdesk"}

        Raises:
            TooManyRequestsException: too many attempts for this username
            UnauthorizedException: unknown username or wrong password
        """
        username = (username or "").strip()
        if not self.rate_limiter.is_allowed(username.lower()):
            logger.warning("Login rate limit hit", extra={"username": username})
            raise TooManyRequestsException(retry_after=int(self.rate_limiter.window_seconds))

        admin = self.session.execute(
            select(Admin).where(Admin.username == username)
        ).scalar_one_or_none()

        if admin is None or not verify_password(password, admin.password_hash):
            logger.warning("Login failed", extra={"username": username})
            raise UnauthorizedException("Invalid credentials")

        admin.last_login_at = datetime.now(timezone.utc)
        self.session.commit()
        self.rate_limiter.reset(username.lower())

        token = create_access_token(admin_id=str(admin.id), username=admin.username)
        logger.info("Admin logged in", extra={"username": admin.username})

        return {
            "token": token,
            "admin_id": str(admin.id),
            "username": admin.username,
        }

    def create_admin(self, username: str, password: str) -> Admin:
        """Create a new admin account.

        Raises:
            ValueError: username or password too short
            ConflictException: username already taken
        """
        username = (username or "").strip()
        if len(username) < 3:
            raise ValueError("Username must be at least 3 characters")
        if len(password or "") < 8:
            raise ValueError("Password must be at least 8 characters")

        existing = self.session.execute(
            select(Admin).where(Admin.username == username)
        ).scalar_one_or_none()
        if existing is not None:
            raise ConflictException("Username already taken", details={"username": username})

        admin = Admin(username=username, password_hash=hash_password(password))
        self.session.add(admin)
        self.session.commit()
        self.session.refresh(admin)
        return admin

    def set_password(self, admin: Admin, password: str) -> None:
        """Replace an admin's password."""
        if len(password or "") < 8:
            raise ValueError("Password must be at least 8 characters")
        admin.password_hash = hash_password(password)
        self.session.commit()
