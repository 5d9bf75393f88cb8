from typing import Any, Dict, Optional

import httpx

from metaproxy.app.core.logging import get_logger
from metaproxy.app.providers.base import BaseCatalog
from metaproxy.app.providers.models import MetadataResult

logger = get_logger(__name__)


class GoogleBooksCatalog(BaseCatalog):
    """Book cover lookup against the Google Books volumes API.

    Every failure resolves to ``found=False``.
    """

    name = "google_books"

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://www.googleapis.com/books/v1",
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 15.0
    ):
        super().__init__(base_url, http_client, timeout)
        self.api_key = api_key

    async def search(self, query: str) -> MetadataResult:
        try:
            data = await self._get_json(
                "/volumes",
                params={"q": query, "key": self.api_key, "maxResults": 1},
            )
            return self._to_result(data)
        except (httpx.HTTPError, ValueError, KeyError, IndexError, TypeError, AttributeError) as e:
            logger.error(f"Google Books error: {e!r}", extra={"catalog": self.name})
            return MetadataResult.not_found()

    @staticmethod
    def _to_result(data: Dict[str, Any]) -> MetadataResult:
        items = data.get("items") or []
        if not isinstance(items, list) or not items:
            return MetadataResult.not_found()

        info = items[0].get("volumeInfo")
        if not isinstance(info, dict):
            return MetadataResult.not_found()

        image_links = info.get("imageLinks")
        thumbnail = image_links.get("thumbnail") if isinstance(image_links, dict) else None
        if not isinstance(thumbnail, str) or not thumbnail:
            return MetadataResult.not_found()

        return MetadataResult(
            found=True,
            title=info.get("title"),
            # Clients embed the image in an https page; avoid mixed content
            image=thumbnail.replace("http://", "https://"),
            url=info.get("infoLink"),
        )
