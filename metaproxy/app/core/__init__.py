"""Core utilities for the proxy application."""

from metaproxy.app.core.config import SecurityMode, Settings, settings
from metaproxy.app.core.logging import get_logger, setup_logging
from metaproxy.app.core.versioning import compare_versions, is_version_older, parse_version

__all__ = [
    "SecurityMode",
    "Settings",
    "settings",
    "get_logger",
    "setup_logging",
    "compare_versions",
    "is_version_older",
    "parse_version",
]
