from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Request

from mintledger.api.routes_public_parts.common import run_op
from mintledger.api.schemas import CustomerMintRequestBody, CustomerRegisterRequest, CustomerWalletRequest, OwnerApproval
from mintledger.api.security import hash_password

router = APIRouter()

Json = Dict[str, Any]


@router.post("/customers/registrations")
def customer_register(request: Request, body: CustomerRegisterRequest) -> Json:
    return run_op(
        request,
        "CUSTOMER_REGISTER",
        address=body.address,
        name=body.name,
        password_hash=hash_password(body.password),
        token_id=body.token_id,
    )


@router.get("/customers/registrations/pending")
def customer_registrations_pending(request: Request, token_id: str, owner_address: str = "") -> Json:
    return run_op(request, "CUSTOMER_REGISTRATIONS_PENDING", token_id=token_id, owner_address=owner_address)


@router.post("/customers/registrations/approve")
def customer_registration_approve(request: Request, body: OwnerApproval) -> Json:
    return run_op(
        request,
        "CUSTOMER_REGISTRATION_APPROVE",
        request_id=body.request_id,
        owner_address=body.owner_address,
    )


@router.post("/customers/mint/requests")
def customer_mint_request(request: Request, body: CustomerMintRequestBody) -> Json:
    return run_op(
        request,
        "CUSTOMER_MINT_REQUEST",
        address=body.address,
        token_id=body.token_id,
        amount=body.amount,
    )


@router.get("/customers/mint/requests/pending")
def customer_mint_requests_pending(request: Request, token_id: str, owner_address: str = "") -> Json:
    return run_op(request, "CUSTOMER_MINT_REQUESTS_PENDING", token_id=token_id, owner_address=owner_address)


@router.post("/customers/mint/requests/approve")
def customer_mint_approve(request: Request, body: OwnerApproval) -> Json:
    return run_op(
        request,
        "CUSTOMER_MINT_APPROVE",
        request_id=body.request_id,
        owner_address=body.owner_address,
    )


@router.post("/customers/wallet")
def customer_wallet(request: Request, body: CustomerWalletRequest) -> Json:
    return run_op(
        request,
        "CUSTOMER_WALLET",
        address=body.address,
        token_id=body.token_id,
        password_hash=hash_password(body.password),
    )
