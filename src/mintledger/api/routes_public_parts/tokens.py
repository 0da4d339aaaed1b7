from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Request

from mintledger.api.routes_public_parts.common import run_op
from mintledger.api.schemas import PasswordCheck, PoolInitRequest, TokenRequestBody
from mintledger.api.security import hash_password

router = APIRouter()

Json = Dict[str, Any]


@router.post("/tokens/pool")
def token_pool_init(request: Request, body: PoolInitRequest) -> Json:
    return run_op(request, "TOKEN_POOL_INIT", size=body.size)


@router.get("/tokens")
def tokens_list(request: Request) -> Json:
    return run_op(request, "TOKENS_LIST")


@router.post("/tokens/requests")
def token_request(request: Request, body: TokenRequestBody) -> Json:
    return run_op(
        request,
        "TOKEN_REQUEST",
        address=body.address,
        name=body.name,
        password_hash=hash_password(body.password),
        country=body.country,
        validation_code=body.validation_code,
    )


@router.get("/tokens/requests/pending")
def token_requests_pending(request: Request) -> Json:
    return run_op(request, "TOKEN_REQUESTS_PENDING")


@router.post("/tokens/requests/{address}/approve")
def token_approve(request: Request, address: str) -> Json:
    return run_op(request, "TOKEN_APPROVE", address=address)


@router.post("/tokens/access")
def token_access(request: Request, body: PasswordCheck) -> Json:
    return run_op(request, "TOKEN_ACCESS", address=body.address, password_hash=hash_password(body.password))


@router.get("/tokens/{token_id}/participants-transfers")
def token_participants_transfers(request: Request, token_id: str, owner_address: str = "") -> Json:
    return run_op(request, "TOKEN_PARTICIPANTS_TRANSFERS", token_id=token_id, owner_address=owner_address)
