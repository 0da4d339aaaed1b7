# src/mintledger/runtime/apply/customers.py
from __future__ import annotations

"""Customer sub-accounts nested under an allocated token.

state surface:
  custreq:<address>:<token_id>      -> CustomerRegistrationRequest JSON
  customer:<address>:<token_id>     -> Customer JSON (created on approval)
  custmintreq:<address>:<token_id>  -> CustomerMintRequest JSON

Review is done by the token's current owner. The owner is named by the
caller (`owner_address`) and compared against Token.owner; it is not bound to
the caller's credential.
"""

from typing import List, Optional, Set

from mintledger.ledger import keys
from mintledger.ledger.store import LedgerTx
from mintledger.ledger.types import Customer, CustomerMintRequest, CustomerRegistrationRequest, Token, maybe
from mintledger.runtime.apply.common import (
    Json,
    _as_amount,
    _as_str,
    _raw_str,
    _require_arg,
    load_customer,
    put_customer,
    put_token,
    request_key_in,
    require_token,
)
from mintledger.runtime.errors import Conflict, InsufficientFunds, NotFound
from mintledger.runtime.gates import require_password, require_token_owner
from mintledger.runtime.op_types import OpEnvelope


def _owned_token(tx: LedgerTx, env: OpEnvelope, token_id: str) -> Token:
    token = require_token(tx, token_id)
    require_token_owner(token, _as_str(env.arg("owner_address")))
    return token


def _apply_customer_register(tx: LedgerTx, env: OpEnvelope) -> Json:
    address = _require_arg(_as_str(env.arg("address")), "address")
    token_id = _require_arg(_as_str(env.arg("token_id")), "token_id")

    token = require_token(tx, token_id)
    if not token.owner:
        raise NotFound("token_not_allocated", {"token_id": token_id})

    req_key = keys.customer_request_key(address, token_id)
    if tx.exists(req_key):
        raise Conflict("customer_registration_exists", {"request_id": req_key})

    req = CustomerRegistrationRequest(
        request_id=req_key,
        address=address,
        name=_raw_str(env.arg("name")),
        password_hash=_raw_str(env.arg("password_hash")),
        token_id=token_id,
        approved=False,
    )
    tx.put(req_key, req.to_json())
    return {"applied": "CUSTOMER_REGISTER", "request_id": req_key}


def _apply_customer_registrations_pending(tx: LedgerTx, env: OpEnvelope) -> Json:
    token_id = _require_arg(_as_str(env.arg("token_id")), "token_id")
    _owned_token(tx, env, token_id)

    out: List[Json] = []
    for _k, v in tx.range_prefix(keys.prefix(keys.NS_CUSTOMER_REQUEST)):
        r = maybe(CustomerRegistrationRequest, v)
        if r is not None and r.token_id == token_id and not r.approved:
            out.append(r.public_view())
    return {"requests": out}


def _apply_customer_registration_approve(tx: LedgerTx, env: OpEnvelope) -> Json:
    request_id = _as_str(env.arg("request_id"))
    request_key_in(request_id, keys.NS_CUSTOMER_REQUEST, what="customer_registration")

    req = maybe(CustomerRegistrationRequest, tx.get(request_id))
    if req is None:
        raise NotFound("customer_registration_not_found", {"request_id": request_id})

    _owned_token(tx, env, req.token_id)
    if req.approved:
        raise Conflict("customer_registration_already_approved", {"request_id": request_id})

    req.approved = True
    tx.put(request_id, req.to_json())

    cust = Customer(
        address=req.address,
        name=req.name,
        password_hash=req.password_hash,
        token_id=req.token_id,
        approved=True,
        balance=0,
    )
    put_customer(tx, cust)
    return {
        "applied": "CUSTOMER_REGISTRATION_APPROVE",
        "request_id": request_id,
        "customer_id": keys.customer_key(cust.address, cust.token_id),
    }


def _apply_customer_mint_request(tx: LedgerTx, env: OpEnvelope) -> Json:
    amount = _as_amount(env.arg("amount"))
    address = _require_arg(_as_str(env.arg("address")), "address")
    token_id = _require_arg(_as_str(env.arg("token_id")), "token_id")

    # Existence only: the customer's approval flag is not re-checked here.
    cust = load_customer(tx, address, token_id)
    if cust is None:
        raise NotFound("customer_not_found", {"address": address, "token_id": token_id})

    req_key = keys.customer_mint_request_key(cust.address, token_id)
    req = CustomerMintRequest(
        request_id=req_key,
        token_id=token_id,
        requested_by=cust.address,
        amount=amount,
        approved=False,
    )
    tx.put(req_key, req.to_json())
    return {"applied": "CUSTOMER_MINT_REQUEST", "request_id": req_key}


def _apply_customer_mint_requests_pending(tx: LedgerTx, env: OpEnvelope) -> Json:
    token_id = _require_arg(_as_str(env.arg("token_id")), "token_id")
    _owned_token(tx, env, token_id)

    out: List[Json] = []
    for _k, v in tx.range_prefix(keys.prefix(keys.NS_CUSTOMER_MINT_REQUEST)):
        r = maybe(CustomerMintRequest, v)
        if r is not None and r.token_id == token_id and not r.approved:
            out.append(r.to_json())
    return {"requests": out}


def _apply_customer_mint_approve(tx: LedgerTx, env: OpEnvelope) -> Json:
    request_id = _as_str(env.arg("request_id"))
    request_key_in(request_id, keys.NS_CUSTOMER_MINT_REQUEST, what="customer_mint_request")

    req = maybe(CustomerMintRequest, tx.get(request_id))
    if req is None:
        raise NotFound("customer_mint_request_not_found", {"request_id": request_id})

    token = _owned_token(tx, env, req.token_id)
    if req.approved:
        raise Conflict("customer_mint_request_already_approved", {"request_id": request_id})

    if token.minted < req.amount:
        raise InsufficientFunds(
            "insufficient_mint_pool",
            {"token_id": token.token_id, "available": int(token.minted), "requested": int(req.amount)},
        )

    cust = load_customer(tx, req.requested_by, req.token_id)
    if cust is None:
        raise NotFound("customer_not_found", {"address": req.requested_by, "token_id": req.token_id})

    req.approved = True
    tx.put(request_id, req.to_json())

    token.minted -= int(req.amount)
    put_token(tx, token)

    cust.balance += int(req.amount)
    put_customer(tx, cust)

    return {
        "applied": "CUSTOMER_MINT_APPROVE",
        "request_id": request_id,
        "token_id": token.token_id,
        "minted": int(token.minted),
        "balance": int(cust.balance),
    }


def _apply_customer_wallet(tx: LedgerTx, env: OpEnvelope) -> Json:
    address = _require_arg(_as_str(env.arg("address")), "address")
    token_id = _require_arg(_as_str(env.arg("token_id")), "token_id")

    cust = load_customer(tx, address, token_id)
    if cust is None:
        raise NotFound("customer_not_found", {"address": address, "token_id": token_id})
    require_password(cust.password_hash, _raw_str(env.arg("password_hash")), subject=address)

    return {
        "address": cust.address,
        "token_id": cust.token_id,
        "balance": int(cust.balance),
        "approved": bool(cust.approved),
        "transfer_ids": list(cust.transfer_ids),
        "token_transfer_ids": list(cust.token_transfer_ids),
    }


CUSTOMER_OPS: Set[str] = {
    "CUSTOMER_REGISTER",
    "CUSTOMER_REGISTRATIONS_PENDING",
    "CUSTOMER_REGISTRATION_APPROVE",
    "CUSTOMER_MINT_REQUEST",
    "CUSTOMER_MINT_REQUESTS_PENDING",
    "CUSTOMER_MINT_APPROVE",
    "CUSTOMER_WALLET",
}


def apply_customers(tx: LedgerTx, env: OpEnvelope) -> Optional[Json]:
    t = env.op
    if t not in CUSTOMER_OPS:
        return None

    if t == "CUSTOMER_REGISTER":
        return _apply_customer_register(tx, env)
    if t == "CUSTOMER_REGISTRATIONS_PENDING":
        return _apply_customer_registrations_pending(tx, env)
    if t == "CUSTOMER_REGISTRATION_APPROVE":
        return _apply_customer_registration_approve(tx, env)
    if t == "CUSTOMER_MINT_REQUEST":
        return _apply_customer_mint_request(tx, env)
    if t == "CUSTOMER_MINT_REQUESTS_PENDING":
        return _apply_customer_mint_requests_pending(tx, env)
    if t == "CUSTOMER_MINT_APPROVE":
        return _apply_customer_mint_approve(tx, env)
    if t == "CUSTOMER_WALLET":
        return _apply_customer_wallet(tx, env)

    return None


__all__ = ["CUSTOMER_OPS", "apply_customers"]
