"""
Audience-keyed identity token cache.
"""

import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from shared.errors import ClaimExtractionError
from shared.logging import get_logger
from ..claims.extractor import extract_claims


@dataclass(frozen=True)
class CachedToken:
    """A token admitted to the cache."""
    audience: str
    token: str
    issued_at: float
    expires_at: float

    @property
    def lifetime(self) -> float:
        return self.expires_at - self.issued_at

    def elapsed_fraction(self, now: float) -> float:
        """Share of the lifetime consumed at ``now``."""
        return (now - self.issued_at) / self.lifetime


class TokenCache:
    """Identity tokens keyed by their own ``aud`` claim.

    An entry is served only while less than ``refresh_threshold`` of its
    lifetime (measured from the moment it was cached) has elapsed, so
    callers always receive a token with meaningful remaining life. Stale
    entries are not evicted; they are ignored by ``get`` and replaced by
    the next ``put`` for the same audience.
    """

    def __init__(self, refresh_threshold: float = 0.75, clock: Callable[[], float] = time.time):
        if not 0 < refresh_threshold <= 1:
            raise ValueError("refresh_threshold must be in (0, 1]")
        self.refresh_threshold = refresh_threshold
        self.logger = get_logger("injector.cache")
        self._clock = clock
        self._entries: Dict[str, CachedToken] = {}
        self._lock = threading.Lock()

    def put(self, raw_token: str) -> Optional[CachedToken]:
        """Cache ``raw_token`` under its ``aud`` claim.

        Best effort: a token whose claims cannot be read, or that is
        already expired, is dropped and ``None`` is returned.
        """
        try:
            audience, expires_at = extract_claims(raw_token)
        except ClaimExtractionError as e:
            self.logger.debug("Token not cached", reason=e.message)
            return None

        issued_at = self._clock()
        if expires_at <= issued_at:
            self.logger.debug("Token not cached", reason="already expired", audience=audience)
            return None

        entry = CachedToken(
            audience=audience,
            token=raw_token,
            issued_at=issued_at,
            expires_at=expires_at,
        )
        with self._lock:
            self._entries[audience] = entry
        return entry

    def get(self, audience: str) -> Optional[str]:
        """Return the cached token for ``audience`` if it is still fresh."""
        with self._lock:
            entry = self._entries.get(audience)
        if entry is None:
            return None

        now = self._clock()
        if now >= entry.expires_at:
            return None
        if entry.elapsed_fraction(now) >= self.refresh_threshold:
            return None
        return entry.token

    def __contains__(self, audience: str) -> bool:
        with self._lock:
            return audience in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
