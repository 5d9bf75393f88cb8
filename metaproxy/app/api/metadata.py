"""Metadata lookup endpoints.

Music lookups report failures as HTTP errors; movie, TV and book lookups
always answer 200, with ``{"found": false}`` when nothing usable came back.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends

from metaproxy.app.api.deps import get_catalogs
from metaproxy.app.exceptions import InvalidQueryError
from metaproxy.app.providers.factory import MetadataCatalogs
from metaproxy.app.providers.models import MetadataResult

router = APIRouter(prefix="/api/metadata", tags=["metadata"])


def _clean(q: Optional[str]) -> str:
    return (q or "").strip()


@router.get("/music")
async def music_metadata(
    q: Optional[str] = None,
    catalogs: MetadataCatalogs = Depends(get_catalogs),
) -> Dict[str, Any]:
    """Top Spotify track for the query, with album art."""
    query = _clean(q)
    if not query:
        raise InvalidQueryError()
    result = await catalogs.music.search(query)
    return result.to_response()


@router.get("/movie")
async def movie_metadata(
    q: Optional[str] = None,
    catalogs: MetadataCatalogs = Depends(get_catalogs),
) -> Dict[str, Any]:
    """Top TMDB movie for the query, with poster."""
    query = _clean(q)
    if not query:
        return MetadataResult.not_found().to_response()
    result = await catalogs.video.search_movie(query)
    return result.to_response()


@router.get("/tv")
async def tv_metadata(
    q: Optional[str] = None,
    catalogs: MetadataCatalogs = Depends(get_catalogs),
) -> Dict[str, Any]:
    """Top TMDB TV show for the query, with poster."""
    query = _clean(q)
    if not query:
        return MetadataResult.not_found().to_response()
    result = await catalogs.video.search_tv(query)
    return result.to_response()


@router.get("/book")
async def book_metadata(
    q: Optional[str] = None,
    catalogs: MetadataCatalogs = Depends(get_catalogs),
) -> Dict[str, Any]:
    """Top Google Books volume for the query, with cover thumbnail."""
    query = _clean(q)
    if not query:
        return MetadataResult.not_found().to_response()
    result = await catalogs.books.search(query)
    return result.to_response()
