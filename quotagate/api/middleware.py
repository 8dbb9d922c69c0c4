"""HTTP entry filter: every request passes the admission gate first."""

from __future__ import annotations

import logging

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from quotagate.exceptions import StorageUnavailable

logger = logging.getLogger(__name__)


def client_key(request: Request, trust_forwarded_for: bool = True) -> str:
    """
    Caller identity used as the rate limit key.

    First X-Forwarded-For entry when trusted, otherwise the peer address.
    """
    if trust_forwarded_for:
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            first = forwarded.split(",")[0].strip()
            if first:
                return first
    return request.client.host if request.client else "unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Enforces the admission gate on inbound requests.

    Reads the gate and gate settings from ``request.app.state`` so the
    app factory (and tests) control the wiring. The gate is synchronous
    and may block, so it runs in the thread pool.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        gate_settings = request.app.state.settings.gate
        if request.url.path in gate_settings.exempt_paths:
            return await call_next(request)

        key = client_key(request, gate_settings.trust_forwarded_for)
        gate = request.app.state.gate

        try:
            allowed = await run_in_threadpool(gate.check, key)
        except StorageUnavailable as exc:
            if gate_settings.fail_open:
                logger.warning("Storage unavailable, failing open for %s: %s", key, exc)
                return await call_next(request)
            logger.error("Storage unavailable, rejecting %s: %s", key, exc)
            return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

        if not allowed:
            return JSONResponse(status_code=429, content={"detail": "Too Many Requests"})

        return await call_next(request)
