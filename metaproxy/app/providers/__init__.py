"""Upstream metadata catalogs."""

from metaproxy.app.providers.base import BaseCatalog
from metaproxy.app.providers.factory import MetadataCatalogs, build_catalogs
from metaproxy.app.providers.google_books import GoogleBooksCatalog
from metaproxy.app.providers.models import ClientConfig, MetadataResult
from metaproxy.app.providers.spotify import SpotifyCatalog
from metaproxy.app.providers.tmdb import TmdbCatalog

__all__ = [
    "BaseCatalog",
    "ClientConfig",
    "GoogleBooksCatalog",
    "MetadataCatalogs",
    "MetadataResult",
    "SpotifyCatalog",
    "TmdbCatalog",
    "build_catalogs",
]
