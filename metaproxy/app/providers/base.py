from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional

import httpx

from metaproxy.app.providers.models import MetadataResult


class BaseCatalog(ABC):
    """Base class for upstream metadata catalogs.

    Subclasses can accept an external httpx.AsyncClient for connection pooling,
    or create their own if not provided.
    """

    name: str = "catalog"

    def __init__(
        self,
        base_url: str,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 15.0
    ):
        """Initialize the catalog.

        Args:
            base_url: The API base URL
            http_client: Optional shared HTTP client for connection pooling
            timeout: Request timeout in seconds (only used without a shared client)
        """
        self._http_client = http_client
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout

    @property
    def http_client(self) -> Optional[httpx.AsyncClient]:
        """Get the HTTP client, if one was provided."""
        return self._http_client

    @asynccontextmanager
    async def _client_context(self) -> AsyncIterator[httpx.AsyncClient]:
        """Yield the shared client, or a per-call client that is closed afterwards."""
        if self._http_client is not None:
            yield self._http_client
            return
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            yield client

    def _get_endpoint_url(self, endpoint: str) -> str:
        return f"{self.base_url}{endpoint}"

    async def _get_json(
        self,
        endpoint: str,
        params: Dict[str, Any],
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        """GET an endpoint and decode the JSON body.

        Raises:
            httpx.HTTPError: On transport errors or non-2xx responses
            ValueError: If the body is not valid JSON
        """
        async with self._client_context() as client:
            resp = await client.get(self._get_endpoint_url(endpoint), params=params, headers=headers)
        resp.raise_for_status()
        return resp.json()

    @abstractmethod
    async def search(self, query: str) -> MetadataResult:
        """Look up the best match for a free-text query."""
        pass
