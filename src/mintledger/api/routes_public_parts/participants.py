from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Request

from mintledger.api.routes_public_parts.common import run_op
from mintledger.api.schemas import ParticipantRegisterRequest
from mintledger.api.security import hash_password

router = APIRouter()

Json = Dict[str, Any]


@router.post("/participants")
def participant_register(request: Request, body: ParticipantRegisterRequest) -> Json:
    """Register a participant; the caller's credential is bound to the new record."""
    return run_op(
        request,
        "PARTICIPANT_REGISTER",
        caller_required=True,
        name=body.name,
        password_hash=hash_password(body.password),
        country=body.country,
    )


@router.get("/participants/{address}/exists")
def participant_exists(request: Request, address: str) -> Json:
    return run_op(request, "PARTICIPANT_EXISTS", address=address)
