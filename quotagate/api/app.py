"""FastAPI application factory."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Callable, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from quotagate.api.middleware import RateLimitMiddleware
from quotagate.api.routes.admin import router as admin_router
from quotagate.api.routes.health import router as health_router
from quotagate.api.routes.policies import router as policies_router
from quotagate.config.settings import Settings, get_settings
from quotagate.exceptions import QuotaGateError
from quotagate.jobs.sweeper import BucketSweeper
from quotagate.limiter.gate import AdmissionGate
from quotagate.limiter.locks import KeyedLock
from quotagate.limiter.policies import PolicyService
from quotagate.limiter.resolver import PolicyResolver
from quotagate.storage.bucket_store import BucketStore
from quotagate.storage.policy_store import PolicyStore
from quotagate.storage.schema import initialize_database
from quotagate.storage.usage_store import UsageStore

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(app: FastAPI):
    sweeper: Optional[BucketSweeper] = app.state.sweeper
    if sweeper is not None:
        sweeper.start()
    try:
        yield
    finally:
        if sweeper is not None:
            sweeper.stop()


async def _quotagate_error_handler(request: Request, exc: QuotaGateError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


def create_app(
    settings: Settings | None = None,
    clock: Optional[Callable[[], int]] = None,
) -> FastAPI:
    """
    Build and return a fully wired FastAPI application.

    Initializes the database, creates the shared stores, the per-key lock
    map, the admission gate and the policy service, then mounts routes
    behind the rate limit middleware.
    """
    settings = settings or get_settings()
    initialize_database(settings.db_path)

    app = FastAPI(
        title="QuotaGate API",
        version="0.1.0",
        description="Per-key rate limiting with token bucket and sliding window policies",
        lifespan=_lifespan,
    )

    # Shared state, read by routes and middleware via request.app.state
    locks = KeyedLock()
    app.state.settings = settings
    app.state.locks = locks
    app.state.policy_store = PolicyStore(settings.db_path)
    app.state.usage_store = UsageStore(settings.db_path)
    app.state.bucket_store = BucketStore(settings.db_path)
    app.state.resolver = PolicyResolver(app.state.policy_store, settings.default_policy)
    app.state.gate = AdmissionGate(
        resolver=app.state.resolver,
        usage_store=app.state.usage_store,
        bucket_store=app.state.bucket_store,
        locks=locks,
        clock=clock,
        prune_on_write=settings.gate.prune_on_write,
    )
    app.state.policy_service = PolicyService(app.state.policy_store, locks=locks)

    app.state.sweeper = None
    if settings.sweep.enabled:
        app.state.sweeper = BucketSweeper(
            bucket_store=app.state.bucket_store,
            resolver=app.state.resolver,
            locks=locks,
            settings=settings.sweep,
            clock=clock,
        )

    app.add_exception_handler(QuotaGateError, _quotagate_error_handler)
    app.add_middleware(RateLimitMiddleware)

    app.include_router(health_router)
    app.include_router(admin_router)
    app.include_router(policies_router)

    return app
