# src/mintledger/runtime/apply/tokens.py
from __future__ import annotations

"""Token pool and admin-gated allocation.

state surface:
  meta:pool               -> {"size": N}
  token:<token_id>        -> Token JSON, token_id in token_1..token_N
  tokenrequest:<address>  -> TokenRequest JSON (one per address, overwritten on resubmit)

Conservation: every token is either available (owner "") or owned; the pool
never grows or shrinks after initialization.
"""

import re
from typing import Any, Dict, List, Optional, Set

from mintledger.ledger import keys
from mintledger.ledger.store import LedgerTx
from mintledger.ledger.types import (
    TOKEN_REQUEST_APPROVED,
    TOKEN_REQUEST_PENDING,
    Token,
    TokenRequest,
    maybe,
)
from mintledger.runtime.apply.common import (
    Json,
    _as_str,
    _raw_str,
    _require_arg,
    load_token,
    put_participant,
    put_token,
    require_participant,
)
from mintledger.runtime.errors import Conflict, NotFound, ValidationError
from mintledger.runtime.gates import require_admin, require_password
from mintledger.runtime.op_types import OpEnvelope

POOL_META = "pool"

_VALIDATION_CODE_RE = re.compile(r"[0-9]{6}")


def pool_size(tx: LedgerTx) -> int:
    meta = tx.get(keys.meta_key(POOL_META))
    if not isinstance(meta, dict):
        return 0
    try:
        return int(meta.get("size", 0))
    except (TypeError, ValueError):
        return 0


def _apply_token_pool_init(tx: LedgerTx, env: OpEnvelope) -> Json:
    raw = env.arg("size")
    if isinstance(raw, bool) or not isinstance(raw, int) or raw <= 0:
        raise ValidationError("invalid_pool_size", {"size": raw})

    if tx.exists(keys.meta_key(POOL_META)):
        raise Conflict("pool_already_initialized", {"size": pool_size(tx)})

    for i in range(1, raw + 1):
        put_token(tx, Token(token_id=keys.token_id_for_index(i), owner="", available=True, minted=0))
    tx.put(keys.meta_key(POOL_META), {"size": int(raw)})
    return {"applied": "TOKEN_POOL_INIT", "size": int(raw)}


def _apply_token_request(tx: LedgerTx, env: OpEnvelope) -> Json:
    address = _require_arg(_as_str(env.arg("address")), "address")
    p = require_participant(tx, address)

    if (
        p.name != _raw_str(env.arg("name"))
        or p.password_hash != _raw_str(env.arg("password_hash"))
        or p.country != _raw_str(env.arg("country"))
    ):
        raise Conflict("participant_details_mismatch", {"address": address})

    code = _raw_str(env.arg("validation_code"))
    if not _VALIDATION_CODE_RE.fullmatch(code):
        raise ValidationError("invalid_validation_code", {"expected": "6 digits"})

    req_key = keys.token_request_key(address)
    req = TokenRequest(
        request_id=req_key,
        address=address,
        status=TOKEN_REQUEST_PENDING,
        token_id="",
        validation_code=code,
    )
    tx.put(req_key, req.to_json())
    return {"applied": "TOKEN_REQUEST", "request_id": req_key}


def _apply_token_requests_pending(tx: LedgerTx, env: OpEnvelope) -> Json:
    require_admin(env)
    out: List[Json] = []
    for _k, v in tx.range_prefix(keys.prefix(keys.NS_TOKEN_REQUEST)):
        r = maybe(TokenRequest, v)
        if r is not None and r.status == TOKEN_REQUEST_PENDING:
            out.append(r.to_json())
    return {"requests": out}


def find_available_token(tx: LedgerTx) -> Optional[Token]:
    """First available token in index order token_1, token_2, ..."""
    for i in range(1, pool_size(tx) + 1):
        t = load_token(tx, keys.token_id_for_index(i))
        if t is not None and t.available:
            return t
    return None


def _apply_token_approve(tx: LedgerTx, env: OpEnvelope) -> Json:
    require_admin(env)
    address = _require_arg(_as_str(env.arg("address")), "address")

    req_key = keys.token_request_key(address)
    req = maybe(TokenRequest, tx.get(req_key))
    if req is None:
        raise Conflict("token_request_not_found", {"address": address})
    if req.status != TOKEN_REQUEST_PENDING:
        raise Conflict("token_request_already_processed", {"address": address, "status": req.status})

    p = require_participant(tx, address)

    token = find_available_token(tx)
    if token is None:
        raise Conflict("no_tokens_available", {"pool_size": pool_size(tx)})

    req.status = TOKEN_REQUEST_APPROVED
    req.token_id = token.token_id
    tx.put(req_key, req.to_json())

    p.token_id = token.token_id
    p.approved = True
    put_participant(tx, p)

    token.owner = address
    token.available = False
    put_token(tx, token)

    return {"applied": "TOKEN_APPROVE", "address": address, "token_id": token.token_id}


def _apply_token_access(tx: LedgerTx, env: OpEnvelope) -> Json:
    address = _require_arg(_as_str(env.arg("address")), "address")
    p = require_participant(tx, address)
    require_password(p.password_hash, _raw_str(env.arg("password_hash")), subject=address)
    if not p.token_id:
        raise NotFound("token_not_assigned", {"address": address})
    return {"address": address, "token_id": p.token_id}


def _apply_tokens_list(tx: LedgerTx, env: OpEnvelope) -> Json:
    out: List[Json] = []
    for _k, v in tx.range_prefix(keys.prefix(keys.NS_TOKEN)):
        t = maybe(Token, v)
        if t is not None:
            out.append(t.to_json())
    return {"tokens": out}


TOKEN_OPS: Set[str] = {
    "TOKEN_POOL_INIT",
    "TOKEN_REQUEST",
    "TOKEN_REQUESTS_PENDING",
    "TOKEN_APPROVE",
    "TOKEN_ACCESS",
    "TOKENS_LIST",
}


def apply_tokens(tx: LedgerTx, env: OpEnvelope) -> Optional[Dict[str, Any]]:
    t = env.op
    if t not in TOKEN_OPS:
        return None

    if t == "TOKEN_POOL_INIT":
        return _apply_token_pool_init(tx, env)
    if t == "TOKEN_REQUEST":
        return _apply_token_request(tx, env)
    if t == "TOKEN_REQUESTS_PENDING":
        return _apply_token_requests_pending(tx, env)
    if t == "TOKEN_APPROVE":
        return _apply_token_approve(tx, env)
    if t == "TOKEN_ACCESS":
        return _apply_token_access(tx, env)
    if t == "TOKENS_LIST":
        return _apply_tokens_list(tx, env)

    return None


__all__ = ["POOL_META", "TOKEN_OPS", "apply_tokens", "find_available_token", "pool_size"]
