"""Tests for upstream catalog providers."""

import httpx
import pytest
import respx
from httpx import Response

from metaproxy.app.core.config import Settings
from metaproxy.app.exceptions import CatalogLookupError, CatalogUnavailableError
from metaproxy.app.providers.factory import MetadataCatalogs, build_catalogs
from metaproxy.app.providers.google_books import GoogleBooksCatalog
from metaproxy.app.providers.models import MetadataResult
from metaproxy.app.providers.spotify import SpotifyCatalog
from metaproxy.app.providers.tmdb import TmdbCatalog
from metaproxy.app.services.token_cache import SpotifyTokenCache

TOKEN_URL = "https://accounts.spotify.com/api/token"
SPOTIFY_SEARCH = "https://api.spotify.com/v1/search"
TMDB_MOVIE = "https://api.themoviedb.org/3/search/movie"
TMDB_TV = "https://api.themoviedb.org/3/search/tv"
BOOKS = "https://www.googleapis.com/books/v1/volumes"

TRACK = {
    "name": "Song 2",
    "artists": [{"name": "Blur"}, {"name": "Someone Else"}],
    "album": {
        "name": "Blur",
        "images": [{"url": "https://i.scdn.co/image/640"}, {"url": "https://i.scdn.co/image/300"}],
    },
    "external_urls": {"spotify": "https://open.spotify.com/track/1"},
}


@pytest.fixture
def spotify(clock):
    cache = SpotifyTokenCache("id", "secret", clock=clock)
    return SpotifyCatalog(token_cache=cache)


def mock_token():
    return respx.post(TOKEN_URL).mock(
        return_value=Response(200, json={"access_token": "tok", "expires_in": 3600})
    )


class TestMetadataResult:
    def test_not_found_serializes_to_found_false_only(self):
        assert MetadataResult.not_found().to_response() == {"found": False}

    def test_found_omits_missing_fields(self):
        result = MetadataResult(found=True, title="Dune", image="https://img", url="https://u")
        assert result.to_response() == {"found": True, "title": "Dune", "image": "https://img", "url": "https://u"}


class TestSpotifyCatalog:
    """Track search against Spotify."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_returns_top_track(self, spotify):
        mock_token()
        search = respx.get(SPOTIFY_SEARCH).mock(
            return_value=Response(200, json={"tracks": {"items": [TRACK]}})
        )

        result = await spotify.search("song 2 blur")

        assert result.to_response() == {
            "found": True,
            "title": "Song 2",
            "artist": "Blur",
            "album": "Blur",
            "image": "https://i.scdn.co/image/640",
            "url": "https://open.spotify.com/track/1",
        }
        request = search.calls.last.request
        assert request.headers["Authorization"] == "Bearer tok"
        assert request.url.params["q"] == "song 2 blur"
        assert request.url.params["type"] == "track"
        assert request.url.params["limit"] == "1"

    @pytest.mark.asyncio
    @respx.mock
    async def test_album_without_images(self, spotify):
        mock_token()
        track = {**TRACK, "album": {"name": "Blur", "images": []}}
        respx.get(SPOTIFY_SEARCH).mock(return_value=Response(200, json={"tracks": {"items": [track]}}))

        result = await spotify.search("song 2")

        assert result.found is True
        assert "image" not in result.to_response()

    @pytest.mark.asyncio
    @respx.mock
    async def test_no_match(self, spotify):
        mock_token()
        respx.get(SPOTIFY_SEARCH).mock(return_value=Response(200, json={"tracks": {"items": []}}))

        result = await spotify.search("nothing")
        assert result.to_response() == {"found": False}

    @pytest.mark.asyncio
    @respx.mock
    async def test_token_unavailable(self, spotify):
        respx.post(TOKEN_URL).mock(return_value=Response(401, json={"error": "invalid_client"}))

        with pytest.raises(CatalogUnavailableError) as exc_info:
            await spotify.search("song")
        assert exc_info.value.status_code == 503
        assert exc_info.value.to_response() == {"error": "Service unavailable"}

    @pytest.mark.asyncio
    @respx.mock
    async def test_search_failure(self, spotify):
        mock_token()
        respx.get(SPOTIFY_SEARCH).mock(return_value=Response(502))

        with pytest.raises(CatalogLookupError) as exc_info:
            await spotify.search("song")
        assert exc_info.value.status_code == 500
        assert exc_info.value.to_response() == {"error": "Search failed"}

    @pytest.mark.asyncio
    @respx.mock
    async def test_search_network_error(self, spotify):
        mock_token()
        respx.get(SPOTIFY_SEARCH).mock(side_effect=httpx.ReadTimeout("slow"))

        with pytest.raises(CatalogLookupError):
            await spotify.search("song")

    @pytest.mark.asyncio
    @respx.mock
    async def test_unauthorized_search_invalidates_token(self, spotify):
        mock_token()
        respx.get(SPOTIFY_SEARCH).mock(return_value=Response(401))

        with pytest.raises(CatalogLookupError):
            await spotify.search("song")
        assert spotify.token_cache.cached.token is None

    @pytest.mark.asyncio
    @respx.mock
    @pytest.mark.parametrize("album", [
        {"name": "Blur", "images": ["not-a-dict"]},
        {"name": "Blur", "images": [None]},
        "not-a-dict",
    ])
    async def test_malformed_track_is_search_failure(self, spotify, album):
        mock_token()
        respx.get(SPOTIFY_SEARCH).mock(
            return_value=Response(200, json={"tracks": {"items": [{**TRACK, "album": album}]}})
        )

        with pytest.raises(CatalogLookupError) as exc_info:
            await spotify.search("song")
        assert exc_info.value.to_response() == {"error": "Search failed"}


class TestTmdbCatalog:
    """Movie and TV lookups against TMDB."""

    @pytest.fixture
    def tmdb(self):
        return TmdbCatalog(api_key="tmdb-key")

    @pytest.mark.asyncio
    @respx.mock
    async def test_movie_with_poster(self, tmdb):
        route = respx.get(TMDB_MOVIE).mock(
            return_value=Response(200, json={"results": [{"id": 438631, "title": "Dune", "poster_path": "/d5.jpg"}]})
        )

        result = await tmdb.search_movie("dune")

        assert result.to_response() == {
            "found": True,
            "title": "Dune",
            "image": "https://image.tmdb.org/t/p/w500/d5.jpg",
            "url": "https://www.themoviedb.org/movie/438631",
        }
        params = route.calls.last.request.url.params
        assert params["api_key"] == "tmdb-key"
        assert params["query"] == "dune"
        assert params["include_adult"] == "false"

    @pytest.mark.asyncio
    @respx.mock
    async def test_tv_uses_name_and_tv_url(self, tmdb):
        respx.get(TMDB_TV).mock(
            return_value=Response(200, json={"results": [{"id": 1396, "name": "Breaking Bad", "poster_path": "/bb.jpg"}]})
        )

        result = await tmdb.search_tv("breaking bad")

        assert result.title == "Breaking Bad"
        assert result.url == "https://www.themoviedb.org/tv/1396"

    @pytest.mark.asyncio
    @respx.mock
    async def test_result_without_poster_is_not_found(self, tmdb):
        respx.get(TMDB_MOVIE).mock(
            return_value=Response(200, json={"results": [{"id": 1, "title": "Obscure", "poster_path": None}]})
        )
        assert (await tmdb.search_movie("obscure")).found is False

    @pytest.mark.asyncio
    @respx.mock
    async def test_empty_results(self, tmdb):
        respx.get(TMDB_MOVIE).mock(return_value=Response(200, json={"results": []}))
        assert (await tmdb.search("nothing")).found is False

    @pytest.mark.asyncio
    @respx.mock
    async def test_upstream_error_is_not_found(self, tmdb):
        respx.get(TMDB_TV).mock(return_value=Response(401, json={"status_message": "Invalid API key"}))
        assert (await tmdb.search_tv("x")).to_response() == {"found": False}

    @pytest.mark.asyncio
    @respx.mock
    async def test_network_error_is_not_found(self, tmdb):
        respx.get(TMDB_MOVIE).mock(side_effect=httpx.ConnectError("down"))
        assert (await tmdb.search_movie("x")).found is False

    @pytest.mark.asyncio
    @respx.mock
    @pytest.mark.parametrize("body", [
        {"results": {"a": 1}},
        {"results": "oops"},
        {"results": ["oops"]},
        {"results": [{"id": 1, "title": "Dune", "poster_path": ["/d5.jpg"]}]},
        ["not", "an", "object"],
        "just a string",
    ])
    async def test_malformed_body_is_not_found(self, tmdb, body):
        respx.get(TMDB_MOVIE).mock(return_value=Response(200, json=body))
        assert (await tmdb.search_movie("dune")).to_response() == {"found": False}

    @pytest.mark.asyncio
    @respx.mock
    async def test_non_json_body_is_not_found(self, tmdb):
        respx.get(TMDB_TV).mock(return_value=Response(200, text="<html>gateway</html>"))
        assert (await tmdb.search_tv("x")).found is False


class TestGoogleBooksCatalog:
    """Book lookups against Google Books."""

    @pytest.fixture
    def books(self):
        return GoogleBooksCatalog(api_key="books-key")

    @pytest.mark.asyncio
    @respx.mock
    async def test_thumbnail_forced_to_https(self, books):
        route = respx.get(BOOKS).mock(
            return_value=Response(200, json={"items": [{"volumeInfo": {
                "title": "Dune",
                "imageLinks": {"thumbnail": "http://books.google.com/books/content?id=1"},
                "infoLink": "https://books.google.com/books?id=1",
            }}]})
        )

        result = await books.search("dune herbert")

        assert result.to_response() == {
            "found": True,
            "title": "Dune",
            "image": "https://books.google.com/books/content?id=1",
            "url": "https://books.google.com/books?id=1",
        }
        params = route.calls.last.request.url.params
        assert params["q"] == "dune herbert"
        assert params["key"] == "books-key"
        assert params["maxResults"] == "1"

    @pytest.mark.asyncio
    @respx.mock
    async def test_missing_thumbnail(self, books):
        respx.get(BOOKS).mock(
            return_value=Response(200, json={"items": [{"volumeInfo": {"title": "No Cover"}}]})
        )
        assert (await books.search("no cover")).found is False

    @pytest.mark.asyncio
    @respx.mock
    async def test_no_items(self, books):
        respx.get(BOOKS).mock(return_value=Response(200, json={"totalItems": 0}))
        assert (await books.search("zzz")).found is False

    @pytest.mark.asyncio
    @respx.mock
    async def test_upstream_error_is_not_found(self, books):
        respx.get(BOOKS).mock(return_value=Response(500))
        assert (await books.search("x")).found is False

    @pytest.mark.asyncio
    @respx.mock
    @pytest.mark.parametrize("body", [
        {"items": [{"volumeInfo": {"imageLinks": "oops"}}]},
        {"items": {"a": 1}},
        {"items": ["oops"]},
        {"items": [{"volumeInfo": "oops"}]},
        {"items": [{"volumeInfo": {"imageLinks": {"thumbnail": 42}}}]},
        ["not", "an", "object"],
    ])
    async def test_malformed_body_is_not_found(self, books, body):
        respx.get(BOOKS).mock(return_value=Response(200, json=body))
        assert (await books.search("dune")).to_response() == {"found": False}


class TestBuildCatalogs:
    def test_builds_from_settings(self):
        config = Settings(
            spotify_client_id="id",
            spotify_client_secret="secret",
            tmdb_api_key="tmdb",
            google_books_key="books",
        )
        token_cache = SpotifyTokenCache.from_settings(config)

        catalogs = build_catalogs(config, token_cache=token_cache)

        assert isinstance(catalogs, MetadataCatalogs)
        assert catalogs.music.token_cache is token_cache
        assert catalogs.video.api_key == "tmdb"
        assert catalogs.books.api_key == "books"
        assert catalogs.music.base_url == "https://api.spotify.com/v1"
