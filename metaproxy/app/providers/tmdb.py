from typing import Any, Dict, Optional

import httpx

from metaproxy.app.core.logging import get_logger
from metaproxy.app.providers.base import BaseCatalog
from metaproxy.app.providers.models import MetadataResult

logger = get_logger(__name__)

POSTER_BASE_URL = "https://image.tmdb.org/t/p/w500"
SITE_BASE_URL = "https://www.themoviedb.org"


class TmdbCatalog(BaseCatalog):
    """Movie and TV poster lookup against The Movie Database.

    Every failure resolves to ``found=False``.
    """

    name = "tmdb"

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.themoviedb.org/3",
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 15.0
    ):
        super().__init__(base_url, http_client, timeout)
        self.api_key = api_key

    async def search(self, query: str) -> MetadataResult:
        return await self.search_movie(query)

    async def search_movie(self, query: str) -> MetadataResult:
        return await self._search("movie", query, title_field="title")

    async def search_tv(self, query: str) -> MetadataResult:
        return await self._search("tv", query, title_field="name")

    async def _search(self, media_type: str, query: str, title_field: str) -> MetadataResult:
        try:
            data = await self._get_json(
                f"/search/{media_type}",
                params={"api_key": self.api_key, "query": query, "include_adult": "false"},
            )
            return self._to_result(data, media_type, title_field)
        except (httpx.HTTPError, ValueError, KeyError, IndexError, TypeError, AttributeError) as e:
            logger.error(f"TMDB {media_type} error: {e!r}", extra={"catalog": self.name})
            return MetadataResult.not_found()

    @staticmethod
    def _to_result(data: Dict[str, Any], media_type: str, title_field: str) -> MetadataResult:
        results = data.get("results") or []
        if not isinstance(results, list) or not results:
            return MetadataResult.not_found()

        result = results[0]
        poster_path = result.get("poster_path") if isinstance(result, dict) else None
        if not isinstance(poster_path, str) or not poster_path:
            return MetadataResult.not_found()

        return MetadataResult(
            found=True,
            title=result.get(title_field),
            image=f"{POSTER_BASE_URL}{poster_path}",
            url=f"{SITE_BASE_URL}/{media_type}/{result.get('id')}",
        )
