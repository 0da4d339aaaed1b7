from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Request

from mintledger.api.routes_public_parts.common import run_op
from mintledger.api.schemas import BalanceSeedRequest, TransferApproval, TransferCreateRequest

router = APIRouter()

Json = Dict[str, Any]


@router.post("/transfers")
def transfer_create(request: Request, body: TransferCreateRequest) -> Json:
    return run_op(
        request,
        "TRANSFER_CREATE",
        sender_ref=body.sender_ref,
        receiver_ref=body.receiver_ref,
        sender_balance_key=body.sender_balance_key,
        receiver_balance_key=body.receiver_balance_key,
        token_id=body.token_id,
        amount=str(body.amount),
    )


@router.post("/transfers/{transfer_id}/approve/owner")
def transfer_approve_owner(request: Request, transfer_id: str, body: TransferApproval) -> Json:
    return run_op(request, "TRANSFER_APPROVE_OWNER", transfer_id=transfer_id, approver=body.approver)


@router.post("/transfers/{transfer_id}/approve/receiver")
def transfer_approve_receiver(request: Request, transfer_id: str, body: TransferApproval) -> Json:
    return run_op(request, "TRANSFER_APPROVE_RECEIVER", transfer_id=transfer_id, approver=body.approver)


@router.post("/balances")
def balance_seed(request: Request, body: BalanceSeedRequest) -> Json:
    return run_op(request, "BALANCE_SEED", ref=body.ref, amount=str(body.amount))


@router.get("/balances")
def balance_get(request: Request, ref: str) -> Json:
    return run_op(request, "BALANCE_GET", ref=ref)
