"""Client identification, version gating and rate limiting middleware.

Every request is tagged with the client's ``x-app-version`` and
``x-client-uuid`` headers (``UNKNOWN`` when absent) and logged. Metadata
routes then pass through the VersionGate, which may answer with the
update-required card or a 429 before the route handler runs.
"""

import time

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from metaproxy.app.core.logging import get_log_context, get_logger
from metaproxy.app.exceptions import RateLimitExceededError
from metaproxy.app.middleware.request_id import get_request_id
from metaproxy.app.services.rate_limiter import RateLimitOutcome, UNKNOWN_CLIENT
from metaproxy.app.services.version_gate import GateAction, UNKNOWN_VERSION, VersionGate

logger = get_logger(__name__)

APP_VERSION_HEADER = "x-app-version"
CLIENT_ID_HEADER = "x-client-uuid"
GATED_PREFIX = "/api/metadata"


def _header_or_unknown(request: Request, name: str, unknown: str) -> str:
    value = request.headers.get(name, "").strip()
    return value or unknown


class ClientGateMiddleware(BaseHTTPMiddleware):
    """Applies the VersionGate to metadata routes.

    The configuration route and anything outside ``/api/metadata`` (health
    checks, docs) are logged but never gated.
    """

    def __init__(self, app, gate: VersionGate, gated_prefix: str = GATED_PREFIX):
        super().__init__(app)
        self.gate = gate
        self.gated_prefix = gated_prefix

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint
    ) -> Response:
        start = time.perf_counter()
        app_version = _header_or_unknown(request, APP_VERSION_HEADER, UNKNOWN_VERSION)
        client_id = _header_or_unknown(request, CLIENT_ID_HEADER, UNKNOWN_CLIENT)
        path = request.url.path

        request.state.app_version = app_version
        request.state.client_id = client_id

        log_context = get_log_context(
            request_id=get_request_id(request),
            client_id=client_id,
            app_version=app_version,
            security_mode=self.gate.mode.value,
            path=path,
            method=request.method,
        )
        logger.info(
            f"[{self.gate.mode.value}] {request.method} {path} v={app_version} id={client_id}",
            extra=log_context,
        )

        if not path.startswith(self.gated_prefix):
            return await call_next(request)

        decision = self.gate.evaluate(app_version, client_id, path)

        if decision.action is GateAction.UPDATE_REQUIRED:
            logger.info("Update required response sent", extra=log_context)
            return JSONResponse(status_code=200, content=decision.payload)

        if decision.action is GateAction.RATE_LIMITED:
            result = decision.rate_limit
            error = RateLimitExceededError(
                retry_after=result.retry_after,
                limit=result.limit,
                newly_banned=result.outcome is RateLimitOutcome.NEWLY_BANNED,
            )
            logger.warning(
                f"Rate limited ({result.outcome.value}), retry in {result.retry_after}s",
                extra=log_context,
            )
            return JSONResponse(
                status_code=error.status_code,
                content=error.to_response(),
                headers=error.headers,
            )

        response = await call_next(request)

        if decision.rate_limit is not None and decision.rate_limit.outcome is RateLimitOutcome.ALLOWED:
            response.headers["X-RateLimit-Limit"] = str(decision.rate_limit.limit)
            response.headers["X-RateLimit-Remaining"] = str(decision.rate_limit.remaining)

        logger.debug(
            "Request completed",
            extra={
                **log_context,
                "status_code": response.status_code,
                "duration_ms": round((time.perf_counter() - start) * 1000, 2),
            },
        )
        return response
