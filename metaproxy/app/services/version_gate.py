"""Minimum-version enforcement for desktop clients.

Outdated clients, and clients too old to send an identifier at all, receive
an "update required" card shaped like a normal metadata result so the client
renders it without special handling.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from metaproxy.app.core.config import SecurityMode, Settings
from metaproxy.app.core.versioning import is_version_older
from metaproxy.app.services.rate_limiter import (
    UNKNOWN_CLIENT,
    ClientRateLimiter,
    RateLimitResult,
)

CONFIG_ROUTE = "/api/config/discord-id"
UNKNOWN_VERSION = "UNKNOWN"


class GateAction(str, Enum):
    PASS = "pass"
    UPDATE_REQUIRED = "update_required"
    RATE_LIMITED = "rate_limited"


@dataclass
class GateDecision:
    action: GateAction
    rate_limit: Optional[RateLimitResult] = None
    payload: Optional[Dict[str, Any]] = None


class VersionGate:
    """Decides whether a request proceeds, is rate limited or must update."""

    def __init__(
        self,
        rate_limiter: ClientRateLimiter,
        min_version: str,
        mode: SecurityMode = SecurityMode.LOG_ONLY,
        update_icon_url: str = "",
        release_page_url: str = "",
        exempt_paths: tuple = (CONFIG_ROUTE,),
    ):
        self.rate_limiter = rate_limiter
        self.min_version = min_version
        self.mode = mode
        self.update_icon_url = update_icon_url
        self.release_page_url = release_page_url
        self.exempt_paths = frozenset(exempt_paths)

    @classmethod
    def from_settings(cls, config: Settings, rate_limiter: ClientRateLimiter) -> "VersionGate":
        return cls(
            rate_limiter=rate_limiter,
            min_version=config.min_app_version,
            mode=config.security_mode,
            update_icon_url=config.update_icon_url,
            release_page_url=config.release_page_url,
        )

    def update_required_payload(self) -> Dict[str, Any]:
        return {
            "found": True,
            "title": f"Update to v{self.min_version}",
            "line1": "Update Required",
            "line2": f"Please install v{self.min_version}",
            "image": self.update_icon_url,
            "url": self.release_page_url,
        }

    def is_outdated(self, client_version: str) -> bool:
        if not client_version or client_version == UNKNOWN_VERSION:
            return False
        return is_version_older(client_version, self.min_version)

    def evaluate(
        self,
        client_version: str,
        client_id: str,
        path: str,
        now: Optional[float] = None,
    ) -> GateDecision:
        """Run the gate for one request.

        Args:
            client_version: ``x-app-version`` header value or "UNKNOWN"
            client_id: ``x-client-uuid`` header value or "UNKNOWN"
            path: Request path
            now: Current time in epoch seconds (defaults to the limiter clock)
        """
        if path in self.exempt_paths or self.mode is not SecurityMode.STRICT:
            return GateDecision(GateAction.PASS)

        if client_id == UNKNOWN_CLIENT:
            return GateDecision(
                GateAction.UPDATE_REQUIRED, payload=self.update_required_payload()
            )

        result = self.rate_limiter.check_and_record(client_id, now)
        if not result.allowed:
            return GateDecision(GateAction.RATE_LIMITED, rate_limit=result)

        if self.is_outdated(client_version):
            return GateDecision(
                GateAction.UPDATE_REQUIRED,
                rate_limit=result,
                payload=self.update_required_payload(),
            )

        return GateDecision(GateAction.PASS, rate_limit=result)
