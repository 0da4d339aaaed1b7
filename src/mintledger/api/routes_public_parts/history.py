from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Request

from mintledger.api.routes_public_parts.common import run_op

router = APIRouter()

Json = Dict[str, Any]


@router.get("/transfers/pending/owner")
def transfers_pending_owner(request: Request, ref: str, status: Optional[str] = None) -> Json:
    return run_op(request, "TRANSFERS_PENDING_OWNER", ref=ref, status=status or "")


@router.get("/transfers/pending/receiver")
def transfers_pending_receiver(request: Request, ref: str, status: Optional[str] = None) -> Json:
    return run_op(request, "TRANSFERS_PENDING_RECEIVER", ref=ref, status=status or "")


@router.get("/transfers/history/participant")
def transfer_history_participant(request: Request, ref: str) -> Json:
    return run_op(request, "TRANSFER_HISTORY_PARTICIPANT", ref=ref)


@router.get("/transfers/history/token/{token_id}")
def transfer_history_token(request: Request, token_id: str) -> Json:
    return run_op(request, "TRANSFER_HISTORY_TOKEN", token_id=token_id)
