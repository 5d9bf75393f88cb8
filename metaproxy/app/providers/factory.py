"""Catalog factory.

Builds every upstream catalog from settings around one shared HTTP client
and token cache.
"""

from dataclasses import dataclass
from typing import Optional

import httpx

from metaproxy.app.core.config import Settings
from metaproxy.app.core.logging import get_logger
from metaproxy.app.providers.google_books import GoogleBooksCatalog
from metaproxy.app.providers.spotify import SpotifyCatalog
from metaproxy.app.providers.tmdb import TmdbCatalog
from metaproxy.app.services.token_cache import SpotifyTokenCache

logger = get_logger(__name__)


@dataclass
class MetadataCatalogs:
    """The catalogs one application instance talks to."""
    music: SpotifyCatalog
    video: TmdbCatalog
    books: GoogleBooksCatalog


def build_catalogs(
    config: Settings,
    http_client: Optional[httpx.AsyncClient] = None,
    token_cache: Optional[SpotifyTokenCache] = None,
) -> MetadataCatalogs:
    """Create all catalogs from settings.

    Args:
        config: Application settings holding upstream credentials
        http_client: Shared HTTP client for connection pooling
        token_cache: Spotify token cache (created from settings if omitted)
    """
    if token_cache is None:
        token_cache = SpotifyTokenCache.from_settings(config, http_client)

    catalogs = MetadataCatalogs(
        music=SpotifyCatalog(
            token_cache=token_cache,
            base_url=config.spotify_api_base_url,
            http_client=http_client,
        ),
        video=TmdbCatalog(
            api_key=config.tmdb_api_key,
            base_url=config.tmdb_base_url,
            http_client=http_client,
        ),
        books=GoogleBooksCatalog(
            api_key=config.google_books_key,
            base_url=config.google_books_base_url,
            http_client=http_client,
        ),
    )

    logger.info(
        "Catalogs initialized",
        extra={
            "spotify_configured": config.spotify_configured,
            "tmdb_configured": bool(config.tmdb_api_key),
            "google_books_configured": bool(config.google_books_key),
        },
    )
    return catalogs
