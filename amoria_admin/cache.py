"""
In-memory bearer credential with expiry.

Both vendor clients (Zoho WorkDrive and the marketplace backend) hold one
access token per process. The token lives in a CachedCredential, and refresh
goes through ``get_or_refresh`` which serialises refreshes behind a lock: the
first caller that finds the token stale refreshes it, callers that were
waiting re-check and reuse the fresh token instead of refreshing again.

Nothing is persisted; a restarted process starts with an empty credential.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from amoria_admin.utils.datetime import utc_now


@dataclass(frozen=True)
class Token:
    """An access token and the instant after which it must not be used."""

    value: str
    expires_at: Optional[datetime] = None

    def is_valid(self, now: Optional[datetime] = None) -> bool:
        if self.expires_at is None:
            return True
        return (now or utc_now()) < self.expires_at

    @classmethod
    def expiring_in(cls, value: str, expires_in: float, margin_seconds: float = 0) -> "Token":
        """Build a token that expires ``expires_in - margin_seconds`` from now."""
        return cls(value, utc_now() + timedelta(seconds=expires_in - margin_seconds))


class CachedCredential:
    """
    Single-flight cache around a token refresh function.

    Example:
        >>> cred = CachedCredential(lambda: Token.expiring_in("abc", 3600, 60))
        >>> cred.get_or_refresh()
        'abc'
    """

    def __init__(self, refresh: Callable[[], Token], initial: Optional[Token] = None):
        self._refresh = refresh
        self._token = initial
        self._lock = threading.Lock()

    def peek(self) -> Optional[Token]:
        """Return the cached token without refreshing (may be stale or None)."""
        return self._token

    def get_or_refresh(self, stale: Optional[str] = None) -> str:
        """
        Return a valid token value, refreshing at most once across threads.

        Args:
            stale: A token value that the caller just saw rejected. If the cache
                still holds that value it is treated as expired.
        """
        token = self._token
        if token is not None and token.is_valid() and token.value != stale:
            return token.value

        with self._lock:
            # Another thread may have refreshed while we waited.
            token = self._token
            if token is not None and token.is_valid() and token.value != stale:
                return token.value
            self._token = self._refresh()
            return self._token.value

    def invalidate(self) -> None:
        with self._lock:
            self._token = None
