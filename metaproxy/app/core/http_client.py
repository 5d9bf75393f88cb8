"""Shared HTTP client management for connection pooling.

One httpx.AsyncClient is created during the application lifespan and shared
by every catalog provider and the token cache.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import httpx

from metaproxy.app.core.config import Settings, settings as default_settings


def build_timeout(config: Settings) -> httpx.Timeout:
    # - connect: Time to establish socket connection
    # - read: Time to read response data
    # - write: Time to send request data
    # - pool: Time to acquire connection from pool
    return httpx.Timeout(
        connect=config.httpx_connect_timeout,
        read=config.httpx_read_timeout,
        write=config.httpx_write_timeout,
        pool=config.httpx_pool_timeout,
    )


def build_limits(config: Settings) -> httpx.Limits:
    return httpx.Limits(
        max_connections=config.httpx_max_connections,
        max_keepalive_connections=config.httpx_max_keepalive_connections,
        keepalive_expiry=config.httpx_keepalive_expiry,
    )


@asynccontextmanager
async def init_http_client(
    config: Optional[Settings] = None,
) -> AsyncGenerator[httpx.AsyncClient, None]:
    """Create the shared HTTP client and close it on exit.

    This context manager should be used in the FastAPI lifespan:

        @asynccontextmanager
        async def lifespan(app: FastAPI):
            async with init_http_client(settings) as client:
                yield
    """
    config = config or default_settings
    client = httpx.AsyncClient(timeout=build_timeout(config), limits=build_limits(config))
    try:
        yield client
    finally:
        await client.aclose()
