"""Pydantic request/response models for the admin API."""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from quotagate.exceptions import UnknownAlgorithm
from quotagate.storage.models import AlgorithmKind, Policy


class PolicyRequest(BaseModel):
    """Body for creating or replacing a policy."""

    key: str = Field(min_length=1)
    kind: AlgorithmKind = AlgorithmKind.TOKEN_BUCKET
    capacity: int = Field(ge=1)
    refill_rate: int = Field(default=0, ge=0)
    window_seconds: int = Field(default=60, ge=1)

    @field_validator("kind", mode="before")
    @classmethod
    def _normalize_kind(cls, value: object) -> AlgorithmKind:
        # "token-bucket", "sliding_window", ... all collapse to the enum here
        try:
            return AlgorithmKind.parse(value)
        except UnknownAlgorithm as exc:
            raise ValueError(str(exc)) from exc

    def to_policy(self, key: str | None = None) -> Policy:
        return Policy(
            key=key or self.key,
            kind=self.kind,
            capacity=self.capacity,
            refill_rate=self.refill_rate,
            window_seconds=self.window_seconds,
        )


class PolicyUpdateRequest(PolicyRequest):
    """Body for PUT; the key comes from the path."""

    key: str = ""


class PolicyResponse(BaseModel):
    """A persisted policy."""

    key: str
    kind: AlgorithmKind
    capacity: int
    refill_rate: int
    window_seconds: int
    created_at: str
    updated_at: str

    @classmethod
    def from_policy(cls, policy: Policy) -> PolicyResponse:
        return cls(
            key=policy.key,
            kind=policy.kind,
            capacity=policy.capacity,
            refill_rate=policy.refill_rate,
            window_seconds=policy.window_seconds,
            created_at=policy.created_at,
            updated_at=policy.updated_at,
        )


class MetricsResponse(BaseModel):
    """Current usage of one key."""

    key: str
    algorithm: str
    current_tokens: int
    capacity: int
    window_seconds: int
    window_request_count: int
    status: str


class StatusResponse(BaseModel):
    """Service status."""

    service: str
    status: str
    version: str
    timestamp: str
    policy_count: int
    tracked_keys: int


class MessageResponse(BaseModel):
    """Acknowledgement for reset / delete."""

    key: str
    message: str


class ErrorResponse(BaseModel):
    """Standard error envelope."""

    detail: str
