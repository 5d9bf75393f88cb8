from typing import Any, Dict, Optional

import httpx

from metaproxy.app.core.logging import get_logger
from metaproxy.app.exceptions import CatalogLookupError, CatalogUnavailableError
from metaproxy.app.providers.base import BaseCatalog
from metaproxy.app.providers.models import MetadataResult
from metaproxy.app.services.token_cache import SpotifyTokenCache

logger = get_logger(__name__)


class SpotifyCatalog(BaseCatalog):
    """Track search against the Spotify Web API.

    Unlike the other catalogs, failures here are raised as typed exceptions:
    a missing token maps to 503 and a failed search to 500.
    """

    name = "spotify"

    def __init__(
        self,
        token_cache: SpotifyTokenCache,
        base_url: str = "https://api.spotify.com/v1",
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 15.0
    ):
        super().__init__(base_url, http_client, timeout)
        self.token_cache = token_cache

    async def search(self, query: str) -> MetadataResult:
        """Return the top track for ``query``.

        Raises:
            CatalogUnavailableError: If no bearer token could be obtained
            CatalogLookupError: If the search request fails
        """
        token = await self.token_cache.get_token()
        if not token:
            raise CatalogUnavailableError(self.name)

        try:
            data = await self._get_json(
                "/search",
                params={"q": query, "type": "track", "limit": 1},
                headers={"Authorization": f"Bearer {token}"},
            )
            items = data["tracks"]["items"]
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 401:
                # Revoked or rotated credentials; force a fresh exchange next time
                self.token_cache.invalidate()
            logger.error(
                f"Spotify search error: HTTP {e.response.status_code}",
                extra={"catalog": self.name},
            )
            raise CatalogLookupError(self.name) from e
        except httpx.HTTPError as e:
            logger.error(f"Spotify search error: {e!r}", extra={"catalog": self.name})
            raise CatalogLookupError(self.name) from e
        except (ValueError, KeyError, TypeError) as e:
            logger.error(f"Spotify search returned malformed body: {e!r}", extra={"catalog": self.name})
            raise CatalogLookupError(self.name) from e

        if not items:
            return MetadataResult.not_found()

        try:
            return self._to_result(items[0])
        except (KeyError, IndexError, TypeError, AttributeError) as e:
            logger.error(f"Spotify track missing fields: {e!r}", extra={"catalog": self.name})
            raise CatalogLookupError(self.name) from e

    @staticmethod
    def _to_result(track: Dict[str, Any]) -> MetadataResult:
        album = track["album"]
        # First image is the largest (640x640)
        images = album.get("images") or []
        return MetadataResult(
            found=True,
            title=track["name"],
            artist=track["artists"][0]["name"],
            album=album["name"],
            image=images[0].get("url") if images else None,
            url=track.get("external_urls", {}).get("spotify"),
        )
