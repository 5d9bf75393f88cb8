"""Middleware package for the proxy."""

from metaproxy.app.middleware.client_gate import ClientGateMiddleware
from metaproxy.app.middleware.request_id import RequestIdMiddleware, get_request_id

__all__ = [
    "ClientGateMiddleware",
    "RequestIdMiddleware",
    "get_request_id",
]
