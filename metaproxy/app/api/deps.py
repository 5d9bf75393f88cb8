"""FastAPI dependencies resolving per-application state."""

from fastapi import Request

from metaproxy.app.core.config import Settings
from metaproxy.app.providers.factory import MetadataCatalogs


def get_catalogs(request: Request) -> MetadataCatalogs:
    """Catalogs created during the application lifespan.

    Raises:
        RuntimeError: If the lifespan has not run
    """
    catalogs = getattr(request.app.state, "catalogs", None)
    if catalogs is None:
        raise RuntimeError("Catalogs not initialized. Ensure lifespan context is active.")
    return catalogs


def get_settings(request: Request) -> Settings:
    return request.app.state.settings
