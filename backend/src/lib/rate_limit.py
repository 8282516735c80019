"""
In-memory rate limiting for form submissions.

Keeps the timestamps of recent attempts per key and refuses a new attempt once
`max_attempts` fall inside the trailing window. State lives in this process
only and is lost on restart.

Usage:
    from src.lib.rate_limit import transaction_rate_limiter

    if not transaction_rate_limiter.is_allowed(admin_id):
        raise TooManyRequestsException()
"""
import time
from threading import Lock
from typing import Callable, Dict, List

from src.lib.settings import settings


class RateLimiter:
    """Sliding-window attempt counter keyed by client identity."""

    def __init__(
        self,
        max_attempts: int = 5,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_attempts = max_attempts
        self.window_seconds = window_seconds
        self._clock = clock
        self._lock = Lock()
        self._attempts: Dict[str, List[float]] = {}
        self._last_sweep = clock()

    def is_allowed(self, key: str) -> bool:
        """
        Record an attempt for `key` if the window has room.

        Returns:
            True if the attempt is allowed (and was recorded), False otherwise
        """
        now = self._clock()
        with self._lock:
            if now - self._last_sweep >= self.window_seconds:
                self._sweep(now)

            recent = [
                t for t in self._attempts.get(key, [])
                if now - t < self.window_seconds
            ]
            if len(recent) >= self.max_attempts:
                self._attempts[key] = recent
                return False

            recent.append(now)
            self._attempts[key] = recent
            return True

    def _sweep(self, now: float) -> None:
        # Keys come from client input (login usernames); drop those with no attempt left in the window
        expired = [
            key for key, attempts in self._attempts.items()
            if not attempts or now - attempts[-1] >= self.window_seconds
        ]
        for key in expired:
            del self._attempts[key]
        self._last_sweep = now

    def tracked_keys(self) -> int:
        """Number of keys currently holding attempts."""
        with self._lock:
            return len(self._attempts)

    def reset(self, key: str) -> None:
        """Forget all attempts for `key`."""
        with self._lock:
            self._attempts.pop(key, None)

    def reset_all(self) -> None:
        """Forget every key (for testing)."""
        with self._lock:
            self._attempts.clear()


# Global limiters
transaction_rate_limiter = RateLimiter(
    max_attempts=settings.transaction_rate_limit,
    window_seconds=settings.transaction_rate_window_seconds,
)
login_rate_limiter = RateLimiter(
    max_attempts=settings.login_rate_limit,
    window_seconds=settings.login_rate_window_seconds,
)
