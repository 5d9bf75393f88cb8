"""Services package for the proxy.

This package provides:
- Spotify client-credentials token caching
- Per-client rate limiting with temporary bans
- Minimum client version enforcement
"""

from metaproxy.app.services.rate_limiter import (
    UNKNOWN_CLIENT,
    ClientRateLimiter,
    ClientState,
    RateLimitOutcome,
    RateLimitResult,
)
from metaproxy.app.services.token_cache import CachedToken, SpotifyTokenCache
from metaproxy.app.services.version_gate import (
    CONFIG_ROUTE,
    GateAction,
    GateDecision,
    VersionGate,
)

__all__ = [
    # Rate limiting
    "UNKNOWN_CLIENT",
    "ClientRateLimiter",
    "ClientState",
    "RateLimitOutcome",
    "RateLimitResult",
    # Token cache
    "CachedToken",
    "SpotifyTokenCache",
    # Version gate
    "CONFIG_ROUTE",
    "GateAction",
    "GateDecision",
    "VersionGate",
]
