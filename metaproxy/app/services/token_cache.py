"""Spotify client-credentials token cache.

The music catalog needs a bearer token obtained through the OAuth2
client-credentials grant. Tokens live for an hour; this cache hands out the
current one until it is within ``safety_margin`` seconds of expiring and then
exchanges the client id/secret for a fresh one.

Failures never raise. ``get_token()`` returns None and the caller turns that
into a "service unavailable" response.
"""

import asyncio
import base64
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Callable, Optional

import httpx

from metaproxy.app.core.config import Settings
from metaproxy.app.core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_TOKEN_URL = "https://accounts.spotify.com/api/token"
DEFAULT_SAFETY_MARGIN_SECONDS = 300.0


@dataclass
class CachedToken:
    """Bearer token and the absolute time (epoch seconds) it expires."""
    token: Optional[str] = None
    expires_at: float = 0.0

    def is_usable(self, now: float, safety_margin: float) -> bool:
        return self.token is not None and now < self.expires_at - safety_margin


class SpotifyTokenCache:
    """Caches the Spotify app token and refreshes it shortly before expiry.

    With ``single_flight`` enabled, concurrent callers that find the token
    stale share one in-flight exchange instead of each issuing their own.
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        http_client: Optional[httpx.AsyncClient] = None,
        token_url: str = DEFAULT_TOKEN_URL,
        safety_margin: float = DEFAULT_SAFETY_MARGIN_SECONDS,
        single_flight: bool = True,
        clock: Callable[[], float] = time.time,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.token_url = token_url
        self.safety_margin = safety_margin
        self.single_flight = single_flight
        self._http_client = http_client
        self._clock = clock
        self._cached = CachedToken()
        self._inflight: Optional["asyncio.Task[Optional[str]]"] = None
        self._warned_unconfigured = False
        self.refresh_count = 0

    @classmethod
    def from_settings(
        cls,
        config: Settings,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> "SpotifyTokenCache":
        return cls(
            client_id=config.spotify_client_id,
            client_secret=config.spotify_client_secret,
            http_client=http_client,
            token_url=config.spotify_token_url,
            safety_margin=config.token_safety_margin_seconds,
            single_flight=config.token_single_flight,
        )

    @property
    def cached(self) -> CachedToken:
        return self._cached

    @property
    def configured(self) -> bool:
        return bool(self.client_id and self.client_secret)

    def is_fresh(self) -> bool:
        return self._cached.is_usable(self._clock(), self.safety_margin)

    def invalidate(self) -> None:
        """Drop the cached token so the next caller re-authenticates."""
        self._cached = CachedToken()

    async def get_token(self) -> Optional[str]:
        """Return a usable bearer token, or None if one cannot be obtained."""
        if self.is_fresh():
            return self._cached.token

        if not self.single_flight:
            return await self._refresh()

        if self._inflight is None:
            self._inflight = asyncio.create_task(self._shared_refresh())
        # Shield so a cancelled caller does not cancel the exchange for others
        return await asyncio.shield(self._inflight)

    async def _shared_refresh(self) -> Optional[str]:
        try:
            return await self._refresh()
        finally:
            self._inflight = None

    @asynccontextmanager
    async def _client_context(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._http_client is not None:
            yield self._http_client
            return
        async with httpx.AsyncClient() as client:
            yield client

    def _basic_auth_header(self) -> str:
        raw = f"{self.client_id}:{self.client_secret}".encode()
        return "Basic " + base64.b64encode(raw).decode()

    async def _refresh(self) -> Optional[str]:
        if not self.configured:
            if not self._warned_unconfigured:
                logger.warning("Spotify credentials are not configured; music lookups disabled")
                self._warned_unconfigured = True
            return None

        self.refresh_count += 1
        try:
            async with self._client_context() as client:
                resp = await client.post(
                    self.token_url,
                    headers={
                        "Authorization": self._basic_auth_header(),
                        "Content-Type": "application/x-www-form-urlencoded",
                    },
                    data={"grant_type": "client_credentials"},
                )
            resp.raise_for_status()
            payload = resp.json()
            token = payload["access_token"]
            expires_in = float(payload["expires_in"])
        except httpx.HTTPStatusError as e:
            logger.error(
                f"Spotify auth failed: HTTP {e.response.status_code} {e.response.text[:200]}",
                extra={"catalog": "spotify"},
            )
            return None
        except httpx.HTTPError as e:
            logger.error(f"Spotify auth failed: {e!r}", extra={"catalog": "spotify"})
            return None
        except (ValueError, KeyError, TypeError) as e:
            logger.error(f"Spotify auth returned malformed body: {e!r}", extra={"catalog": "spotify"})
            return None

        if not isinstance(token, str) or not token:
            logger.error("Spotify auth returned an empty access token", extra={"catalog": "spotify"})
            return None

        self._cached = CachedToken(token=token, expires_at=self._clock() + expires_in)
        logger.info("New Spotify token acquired", extra={"catalog": "spotify"})
        return token
