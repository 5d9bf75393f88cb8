"""API endpoints package for the proxy."""

from metaproxy.app.api.config import router as config_router
from metaproxy.app.api.metadata import router as metadata_router

__all__ = [
    "config_router",
    "metadata_router",
]
