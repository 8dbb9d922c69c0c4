"""Admin API routes: policy CRUD."""

from __future__ import annotations

from fastapi import APIRouter, Request

from quotagate.api.schemas import (
    MessageResponse,
    PolicyRequest,
    PolicyResponse,
    PolicyUpdateRequest,
)

router = APIRouter(prefix="/admin/policies", tags=["policies"])


@router.get("", response_model=list[PolicyResponse])
def list_policies(request: Request) -> list[PolicyResponse]:
    service = request.app.state.policy_service
    return [PolicyResponse.from_policy(p) for p in service.list_policies()]


@router.get("/{key}", response_model=PolicyResponse)
def get_policy(request: Request, key: str) -> PolicyResponse:
    service = request.app.state.policy_service
    return PolicyResponse.from_policy(service.get_policy(key))


@router.post("", response_model=PolicyResponse, status_code=201)
def create_policy(request: Request, body: PolicyRequest) -> PolicyResponse:
    """Create a policy. 409 if the key already has one."""
    service = request.app.state.policy_service
    return PolicyResponse.from_policy(service.create_policy(body.to_policy()))


@router.put("/{key}", response_model=PolicyResponse)
def update_policy(request: Request, key: str, body: PolicyUpdateRequest) -> PolicyResponse:
    """Replace the parameters of an existing policy. 404 if there is none."""
    service = request.app.state.policy_service
    return PolicyResponse.from_policy(service.update_policy(key, body.to_policy(key)))


@router.delete("/{key}", response_model=MessageResponse)
def delete_policy(request: Request, key: str) -> MessageResponse:
    service = request.app.state.policy_service
    service.delete_policy(key)
    return MessageResponse(key=key, message="Policy deleted successfully")
