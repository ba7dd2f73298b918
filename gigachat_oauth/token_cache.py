"""Bearer token cache for GigaChat requests"""

import asyncio
import datetime
import logging
import time
from typing import Any, Callable, Dict, Optional

import httpx

from settings import GIGACHAT_AUTH_URL, GIGACHAT_SCOPE
from .models import CachedCredential
from .token_exchange import request_access_token

logger = logging.getLogger(__name__)


class TokenCache:
    """Holds one bearer credential and refreshes it on demand

    One instance serves one credential scope and is shared by reference
    between every client using that scope. By default concurrent callers that
    find the credential expired each run their own exchange and the last one
    to finish wins; refreshes are idempotent so the only cost is a redundant
    auth call. With ``single_flight=True`` refreshes are serialized and
    callers waiting on the lock reuse the credential the first one obtained.
    """

    def __init__(
        self,
        auth_url: str = GIGACHAT_AUTH_URL,
        scope: str = GIGACHAT_SCOPE,
        http_client: Optional[httpx.AsyncClient] = None,
        verify: bool = True,
        single_flight: bool = False,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize the cache

        Args:
            auth_url: OAuth endpoint
            scope: API scope requested on every exchange
            http_client: Client used for exchanges (a temporary one per exchange when None)
            verify: TLS verification for temporary clients
            single_flight: Serialize refreshes instead of letting them race
            clock: Returns the current time in epoch seconds
        """
        self.auth_url = auth_url
        self.scope = scope
        self.http_client = http_client
        self.verify = verify
        self.single_flight = single_flight
        self._clock = clock
        self._credential: Optional[CachedCredential] = None
        self._refresh_lock = asyncio.Lock() if single_flight else None
        self.refresh_count = 0

    @property
    def credential(self) -> Optional[CachedCredential]:
        """The current credential snapshot, valid or not"""
        return self._credential

    def _cached_if_valid(self) -> Optional[CachedCredential]:
        credential = self._credential
        if credential is not None and credential.is_valid(self._clock()):
            return credential
        return None

    async def get_valid_token(self, credentials: str) -> CachedCredential:
        """Return a usable credential, authenticating only when needed

        Args:
            credentials: Base64 authorization key

        Returns:
            A credential valid for at least the safety margin

        Raises:
            AuthenticationError: If a required exchange fails
        """
        credential = self._cached_if_valid()
        if credential is not None:
            return credential

        if self._refresh_lock is None:
            return await self._refresh(credentials)

        async with self._refresh_lock:
            # Another caller may have refreshed while we waited
            credential = self._cached_if_valid()
            if credential is not None:
                logger.debug("Reusing token refreshed by a concurrent caller")
                return credential
            return await self._refresh(credentials)

    async def _refresh(self, credentials: str) -> CachedCredential:
        if self._credential is None:
            logger.info("No cached GigaChat token, authenticating...")
        else:
            logger.info("GigaChat token expired or about to expire, refreshing...")

        self.refresh_count += 1
        credential = await request_access_token(
            credentials,
            auth_url=self.auth_url,
            scope=self.scope,
            http_client=self.http_client,
            verify=self.verify,
        )
        # Superseded, never mutated in place
        self._credential = credential
        return credential

    def invalidate(self) -> None:
        """Drop the cached credential so the next call re-authenticates"""
        if self._credential is not None:
            logger.info("Invalidating cached GigaChat token")
        self._credential = None

    def status(self) -> Dict[str, Any]:
        """Get token status without exposing the token"""
        credential = self._credential
        if credential is None:
            return {
                "has_token": False,
                "is_valid": False,
                "expires_at": None,
                "expires_in_seconds": None,
                "refresh_count": self.refresh_count,
            }

        now = self._clock()
        expires_dt = datetime.datetime.fromtimestamp(credential.expires_at, tz=datetime.timezone.utc)
        return {
            "has_token": True,
            "is_valid": credential.is_valid(now),
            "expires_at": expires_dt.isoformat(),
            "expires_in_seconds": int(credential.seconds_remaining(now)),
            "refresh_count": self.refresh_count,
        }
