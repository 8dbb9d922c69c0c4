"""Liveness and status routes."""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Request

from quotagate.api.schemas import StatusResponse

router = APIRouter(tags=["system"])


@router.get("/health")
def health() -> dict:
    """Simple liveness check."""
    return {"status": "ok"}


@router.get("/admin/status", response_model=StatusResponse)
def status(request: Request) -> StatusResponse:
    """Service status with policy and tracked-key counts."""
    return StatusResponse(
        service="QuotaGate",
        status="UP",
        version=request.app.version,
        timestamp=datetime.now(timezone.utc).isoformat(),
        policy_count=request.app.state.policy_store.count(),
        tracked_keys=request.app.state.usage_store.count(),
    )
