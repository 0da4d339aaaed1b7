from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Request

from mintledger.api.routes_public_parts.common import run_op
from mintledger.api.schemas import MintRequestBody, PasswordCheck, RequestApproval
from mintledger.api.security import hash_password

router = APIRouter()

Json = Dict[str, Any]


@router.post("/mint/requests")
def mint_request(request: Request, body: MintRequestBody) -> Json:
    return run_op(
        request,
        "MINT_REQUEST",
        address=body.address,
        password_hash=hash_password(body.password),
        amount=body.amount,
    )


@router.get("/mint/requests/pending")
def mint_requests_pending(request: Request) -> Json:
    return run_op(request, "MINT_REQUESTS_PENDING")


# Request ids are encoded ledger keys, so they travel in the body.
@router.post("/mint/requests/approve")
def mint_approve(request: Request, body: RequestApproval) -> Json:
    return run_op(request, "MINT_APPROVE", request_id=body.request_id)


@router.post("/wallet")
def wallet_info(request: Request, body: PasswordCheck) -> Json:
    return run_op(request, "WALLET_INFO", address=body.address, password_hash=hash_password(body.password))
