"""Data models for GigaChat OAuth authentication"""

import time
from dataclasses import dataclass
from typing import Optional

# A credential is only handed out while it has more than this many seconds left
SAFETY_MARGIN_SECONDS = 60

# expires_at values above this are epoch milliseconds (year 5138 in seconds)
_MILLISECONDS_THRESHOLD = 10 ** 11


def normalize_expires_at(expires_at: float) -> float:
    """Convert an epoch timestamp in milliseconds to seconds if needed"""
    if expires_at > _MILLISECONDS_THRESHOLD:
        return expires_at / 1000.0
    return float(expires_at)


@dataclass(frozen=True)
class CachedCredential:
    """Bearer token issued by the GigaChat OAuth endpoint

    Attributes:
        token: Access token sent as ``Authorization: Bearer <token>``
        expires_at: Absolute expiry in seconds since the epoch
    """
    token: str
    expires_at: float

    def is_valid(self, now: Optional[float] = None) -> bool:
        """Check the credential still has more than the safety margin left"""
        if now is None:
            now = time.time()
        return now + SAFETY_MARGIN_SECONDS < self.expires_at

    def seconds_remaining(self, now: Optional[float] = None) -> float:
        if now is None:
            now = time.time()
        return self.expires_at - now

    def __repr__(self) -> str:
        # Never leak the token into logs or tracebacks
        return f"CachedCredential(token='***', expires_at={self.expires_at})"
