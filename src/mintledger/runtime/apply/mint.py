# src/mintledger/runtime/apply/mint.py
from __future__ import annotations

"""Participant-level mint issuance.

state surface:
  mintrequest:<token_id>:<address> -> MintRequest JSON

A token owner asks for coins, an admin approves, and the approved amount is
credited to the token's mint pool (Token.minted).
"""

from typing import List, Optional, Set

from mintledger.ledger import keys
from mintledger.ledger.store import LedgerTx
from mintledger.ledger.types import MintRequest, Participant, Token, maybe
from mintledger.runtime.apply.common import (
    Json,
    _as_amount,
    _as_str,
    _raw_str,
    _require_arg,
    put_token,
    request_key_in,
    require_participant,
    require_token,
)
from mintledger.runtime.errors import Conflict, NotFound, Unauthorized
from mintledger.runtime.gates import require_admin, require_bound_caller, require_password
from mintledger.runtime.op_types import OpEnvelope


def _authenticated_owner(tx: LedgerTx, env: OpEnvelope) -> tuple[Participant, Token]:
    """Password + enrolled credential, then the participant's own token."""
    address = _require_arg(_as_str(env.arg("address")), "address")
    p = require_participant(tx, address)
    require_password(p.password_hash, _raw_str(env.arg("password_hash")), subject=address)
    require_bound_caller(env.caller, p)
    token = require_token(tx, p.token_id)
    return p, token


def _apply_mint_request(tx: LedgerTx, env: OpEnvelope) -> Json:
    amount = _as_amount(env.arg("amount"))
    p, token = _authenticated_owner(tx, env)
    if token.owner != p.address:
        raise Unauthorized("not_token_owner", {"address": p.address, "token_id": token.token_id})

    req_key = keys.mint_request_key(token.token_id, p.address)
    req = MintRequest(
        request_id=req_key,
        token_id=token.token_id,
        requested_by=p.address,
        amount=amount,
        approved=False,
    )
    tx.put(req_key, req.to_json())
    return {"applied": "MINT_REQUEST", "request_id": req_key}


def _apply_mint_requests_pending(tx: LedgerTx, env: OpEnvelope) -> Json:
    require_admin(env)
    out: List[Json] = []
    for _k, v in tx.range_prefix(keys.prefix(keys.NS_MINT_REQUEST)):
        r = maybe(MintRequest, v)
        if r is not None and not r.approved:
            out.append(r.to_json())
    return {"requests": out}


def _apply_mint_approve(tx: LedgerTx, env: OpEnvelope) -> Json:
    require_admin(env)
    request_id = _as_str(env.arg("request_id"))
    request_key_in(request_id, keys.NS_MINT_REQUEST, what="mint_request")

    req = maybe(MintRequest, tx.get(request_id))
    if req is None:
        raise NotFound("mint_request_not_found", {"request_id": request_id})
    if req.approved:
        raise Conflict("mint_request_already_approved", {"request_id": request_id})

    token = require_token(tx, req.token_id)

    req.approved = True
    tx.put(request_id, req.to_json())

    token.minted += int(req.amount)
    put_token(tx, token)

    return {"applied": "MINT_APPROVE", "request_id": request_id, "token_id": token.token_id, "minted": token.minted}


def _apply_wallet_info(tx: LedgerTx, env: OpEnvelope) -> Json:
    p, token = _authenticated_owner(tx, env)
    return {
        "address": p.address,
        "token_id": token.token_id,
        "minted": int(token.minted),
        "token_transfer_ids": list(token.transfer_ids),
    }


MINT_OPS: Set[str] = {
    "MINT_REQUEST",
    "MINT_REQUESTS_PENDING",
    "MINT_APPROVE",
    "WALLET_INFO",
}


def apply_mint(tx: LedgerTx, env: OpEnvelope) -> Optional[Json]:
    t = env.op
    if t not in MINT_OPS:
        return None

    if t == "MINT_REQUEST":
        return _apply_mint_request(tx, env)
    if t == "MINT_REQUESTS_PENDING":
        return _apply_mint_requests_pending(tx, env)
    if t == "MINT_APPROVE":
        return _apply_mint_approve(tx, env)
    if t == "WALLET_INFO":
        return _apply_wallet_info(tx, env)

    return None


__all__ = ["MINT_OPS", "apply_mint"]
