import asyncio
import traceback
from contextlib import asynccontextmanager, suppress
from typing import Any, AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from metaproxy.app.api.config import router as config_router
from metaproxy.app.api.metadata import router as metadata_router
from metaproxy.app.core.config import Settings, settings as default_settings
from metaproxy.app.core.http_client import init_http_client
from metaproxy.app.core.logging import get_logger, setup_logging
from metaproxy.app.exceptions import ProxyException
from metaproxy.app.middleware.client_gate import ClientGateMiddleware
from metaproxy.app.middleware.request_id import RequestIdMiddleware, get_request_id
from metaproxy.app.providers.factory import build_catalogs
from metaproxy.app.services.rate_limiter import ClientRateLimiter
from metaproxy.app.services.token_cache import SpotifyTokenCache
from metaproxy.app.services.version_gate import VersionGate


async def _sweep_rate_limiter(limiter: ClientRateLimiter, interval: float) -> None:
    """Periodically drop idle client entries from the rate limiter."""
    logger = get_logger(__name__)
    while True:
        await asyncio.sleep(interval)
        removed = limiter.sweep()
        if removed:
            logger.debug(f"Rate limiter sweep removed {removed} idle clients")


def create_app(config: Optional[Settings] = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        config: Settings for this instance (defaults to environment settings)

    Returns:
        Configured FastAPI application instance
    """
    config = config or default_settings

    setup_logging(config)
    logger = get_logger(__name__)

    # Shared state is owned by this application instance
    rate_limiter = ClientRateLimiter.from_settings(config)
    version_gate = VersionGate.from_settings(config, rate_limiter)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan context manager.

        Creates the shared HTTP client, token cache and catalogs on startup,
        starts the rate limiter sweep, and tears everything down on shutdown.
        """
        async with init_http_client(config) as http_client:
            token_cache = SpotifyTokenCache.from_settings(config, http_client)
            app.state.token_cache = token_cache
            app.state.catalogs = build_catalogs(config, http_client, token_cache)

            sweeper = asyncio.create_task(
                _sweep_rate_limiter(rate_limiter, config.rate_limit_sweep_interval_seconds)
            )

            logger.info(
                "Application startup complete",
                extra={
                    "security_mode": config.security_mode.value,
                    "min_app_version": config.min_app_version,
                    "port": config.port,
                },
            )
            logger.info("Music support: " + ("enabled (Spotify)" if config.spotify_configured else "disabled"))

            try:
                yield
            finally:
                sweeper.cancel()
                with suppress(asyncio.CancelledError):
                    await sweeper
                app.state.catalogs = None

        logger.info("Application shutdown complete")

    app = FastAPI(
        title="PlexRPC Metadata Proxy",
        description="Metadata proxy with version gating and per-client rate limiting",
        version="1.0.0",
        lifespan=lifespan
    )

    app.state.settings = config
    app.state.rate_limiter = rate_limiter
    app.state.version_gate = version_gate
    app.state.catalogs = None

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(ClientGateMiddleware, gate=version_gate)
    # Request ID middleware (outermost - gate logs carry the request ID)
    app.add_middleware(RequestIdMiddleware)

    app.include_router(metadata_router)
    app.include_router(config_router)

    @app.get("/health")
    async def health() -> dict[str, Any]:
        """Liveness probe; never gated."""
        return {
            "status": "ok",
            "security_mode": config.security_mode.value,
            "min_app_version": config.min_app_version,
            "tracked_clients": len(rate_limiter),
        }

    @app.exception_handler(ProxyException)
    async def proxy_exception_handler(request: Request, exc: ProxyException) -> JSONResponse:
        """Render typed proxy errors as {"error": ...} with their status code."""
        return JSONResponse(status_code=exc.status_code, content=exc.to_response())

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Global exception handler for unhandled exceptions.

        Never returns a traceback to the client; the full trace is logged.
        """
        request_id = get_request_id(request)
        logger.exception(
            f"Unhandled exception [request_id={request_id}]",
            extra={
                "request_id": request_id,
                "exception_type": type(exc).__name__,
                "traceback": traceback.format_exc(),
            }
        )

        content = {
            "error": "internal_error",
            "message": str(exc) if config.debug else "Internal server error",
            "request_id": request_id,
        }
        return JSONResponse(status_code=500, content=content)

    return app


def run() -> None:
    """Console entry point: serve the default application with uvicorn."""
    import uvicorn

    uvicorn.run(
        "metaproxy.app.main:app",
        host="0.0.0.0",
        port=default_settings.port,
        log_config=None,
    )


# Create the application instance
app = create_app()
