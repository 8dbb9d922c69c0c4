"""Admin API routes: usage metrics and counter resets."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request

from quotagate.api.schemas import MessageResponse, MetricsResponse
from quotagate.limiter.gate import UsageSnapshot

router = APIRouter(prefix="/admin", tags=["admin"])


def _to_metrics(snap: UsageSnapshot) -> MetricsResponse:
    return MetricsResponse(
        key=snap.key,
        algorithm=snap.algorithm,
        current_tokens=snap.tokens,
        capacity=snap.capacity,
        window_seconds=snap.window_seconds,
        window_request_count=snap.window_request_count,
        status=snap.status,
    )


@router.get("/metrics", response_model=list[MetricsResponse])
def all_metrics(request: Request) -> list[MetricsResponse]:
    """Usage of every key seen so far."""
    gate = request.app.state.gate
    return [_to_metrics(s) for s in gate.snapshots()]


@router.get("/metrics/{key}", response_model=MetricsResponse)
def key_metrics(request: Request, key: str) -> MetricsResponse:
    """Usage of one key."""
    snap = request.app.state.gate.snapshot(key)
    if snap is None:
        raise HTTPException(status_code=404, detail="No usage recorded for key")
    return _to_metrics(snap)


@router.post("/reset/{key}", response_model=MessageResponse)
def reset_key(request: Request, key: str) -> MessageResponse:
    """Refill a key's bucket and clear its window history."""
    request.app.state.gate.reset(key)
    return MessageResponse(key=key, message="Rate limit counters reset successfully")
