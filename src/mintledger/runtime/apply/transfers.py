# src/mintledger/runtime/apply/transfers.py
from __future__ import annotations

"""Two-phase bilateral transfers.

state surface:
  transfer:<transfer_id>  -> TransferRequest JSON
  balance:<ref>           -> bare decimal string (the sender's balance record)

Lifecycle:
  PendingOwnerApproval -> PendingReceiverApproval -> Completed | Rejected

No value moves until the receiver approves. The sender side is debited from
the bare balance record stored at the sender reference; the receiver side is
the token's mint pool, credited with the amount truncated toward zero.
"""

import uuid
from decimal import Decimal, localcontext
from typing import Any, List, Optional, Set

from mintledger.ledger import keys
from mintledger.ledger.store import LedgerTx
from mintledger.ledger.types import TransferRequest, TransferStatus, format_decimal, maybe, parse_decimal
from mintledger.runtime.apply.common import (
    Json,
    _as_str,
    _require_arg,
    load_customer,
    load_token,
    put_customer,
    put_token,
    require_token,
)
from mintledger.runtime.errors import Conflict, InsufficientFunds, NotFound, ValidationError
from mintledger.runtime.gates import require_admin, require_transfer_receiver, require_transfer_sender
from mintledger.runtime.op_types import OpEnvelope


def new_transfer_id() -> str:
    return f"transfer_{uuid.uuid4()}"


def _parse_amount(raw: Any, *, field: str = "amount") -> Decimal:
    try:
        return parse_decimal(raw)
    except ValueError as e:
        raise ValidationError("invalid_amount", {"field": field, "value": str(raw)}) from e


def load_transfer(tx: LedgerTx, transfer_id: str) -> TransferRequest:
    tr = maybe(TransferRequest, tx.get(keys.transfer_key(transfer_id))) if transfer_id else None
    if tr is None:
        raise NotFound("transfer_not_found", {"transfer_id": transfer_id})
    return tr


def _put_transfer(tx: LedgerTx, tr: TransferRequest) -> None:
    tx.put(keys.transfer_key(tr.transfer_id), tr.to_json())


def exact_sub(a: Decimal, b: Decimal) -> Decimal:
    """a - b without rounding, whatever the scales of the operands."""
    top = max(a.adjusted(), b.adjusted())
    bottom = min(int(a.as_tuple().exponent), int(b.as_tuple().exponent))
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, top - bottom + 2)
        return a - b


def _advance(tr: TransferRequest, nxt: str) -> None:
    if not TransferStatus.can_transition(tr.status, nxt):
        raise Conflict(
            "transfer_invalid_state",
            {"transfer_id": tr.transfer_id, "status": tr.status, "requested": nxt},
        )
    tr.status = nxt


def _note_transfer(tx: LedgerTx, tr: TransferRequest) -> None:
    """Append the id to the token and to customer records at either reference.

    Participant records are left alone; only token allocation mutates them.
    """
    token = load_token(tx, tr.token_id)
    if token is not None:
        token.transfer_ids.append(tr.transfer_id)
        put_token(tx, token)

    refs: List[str] = []
    for ref in (tr.sender_ref, tr.receiver_ref):
        if ref and ref not in refs:
            refs.append(ref)

    if not tr.token_id:
        return
    for ref in refs:
        cust = load_customer(tx, ref, tr.token_id)
        if cust is not None:
            cust.transfer_ids.append(tr.transfer_id)
            put_customer(tx, cust)


def _apply_transfer_create(tx: LedgerTx, env: OpEnvelope) -> Json:
    amount = _parse_amount(env.arg("amount"))

    tr = TransferRequest(
        transfer_id=new_transfer_id(),
        token_id=_as_str(env.arg("token_id")),
        amount=amount,
        sender_ref=_as_str(env.arg("sender_ref")),
        receiver_ref=_as_str(env.arg("receiver_ref")),
        sender_balance_key=_as_str(env.arg("sender_balance_key")),
        receiver_balance_key=_as_str(env.arg("receiver_balance_key")),
        status=TransferStatus.PENDING_OWNER,
    )
    _put_transfer(tx, tr)
    _note_transfer(tx, tr)
    return {"applied": "TRANSFER_CREATE", "transfer_id": tr.transfer_id, "status": tr.status}


def _apply_transfer_approve_owner(tx: LedgerTx, env: OpEnvelope) -> Json:
    tr = load_transfer(tx, _as_str(env.arg("transfer_id")))
    if tr.status != TransferStatus.PENDING_OWNER:
        raise Conflict("transfer_not_pending_owner", {"transfer_id": tr.transfer_id, "status": tr.status})
    require_transfer_sender(tr, _as_str(env.arg("approver")))

    _advance(tr, TransferStatus.PENDING_RECEIVER)
    _put_transfer(tx, tr)
    return {"applied": "TRANSFER_APPROVE_OWNER", "transfer_id": tr.transfer_id, "status": tr.status}


def _apply_transfer_approve_receiver(tx: LedgerTx, env: OpEnvelope) -> Json:
    tr = load_transfer(tx, _as_str(env.arg("transfer_id")))
    if tr.status != TransferStatus.PENDING_RECEIVER:
        raise Conflict("transfer_not_pending_receiver", {"transfer_id": tr.transfer_id, "status": tr.status})

    token = require_token(tx, tr.token_id)
    require_transfer_receiver(tr, token, _as_str(env.arg("approver")))

    bal_key = keys.balance_key(tr.sender_ref)
    raw = tx.get(bal_key)
    if raw is None:
        raise NotFound("sender_balance_not_found", {"ref": tr.sender_ref})
    try:
        balance = parse_decimal(raw)
    except ValueError as e:
        raise ValidationError("invalid_sender_balance", {"ref": tr.sender_ref}) from e

    if balance < tr.amount:
        # The Rejected status is committed even though the op reports failure.
        _advance(tr, TransferStatus.REJECTED)
        _put_transfer(tx, tr)
        raise InsufficientFunds(
            "insufficient_sender_balance",
            {"transfer_id": tr.transfer_id, "status": tr.status},
            commit_writes=True,
        )

    tx.put(bal_key, format_decimal(exact_sub(balance, tr.amount)))

    token.minted += int(tr.amount)
    put_token(tx, token)

    _advance(tr, TransferStatus.COMPLETED)
    _put_transfer(tx, tr)
    return {
        "applied": "TRANSFER_APPROVE_RECEIVER",
        "transfer_id": tr.transfer_id,
        "status": tr.status,
        "minted": int(token.minted),
    }


def _apply_balance_seed(tx: LedgerTx, env: OpEnvelope) -> Json:
    require_admin(env)
    ref = _require_arg(_as_str(env.arg("ref")), "ref")
    amount = _parse_amount(env.arg("amount"))
    tx.put(keys.balance_key(ref), format_decimal(amount))
    return {"applied": "BALANCE_SEED", "ref": ref, "amount": format_decimal(amount)}


def _apply_balance_get(tx: LedgerTx, env: OpEnvelope) -> Json:
    ref = _require_arg(_as_str(env.arg("ref")), "ref")
    raw = tx.get(keys.balance_key(ref))
    return {"ref": ref, "amount": None if raw is None else str(raw)}


TRANSFER_OPS: Set[str] = {
    "TRANSFER_CREATE",
    "TRANSFER_APPROVE_OWNER",
    "TRANSFER_APPROVE_RECEIVER",
    "BALANCE_SEED",
    "BALANCE_GET",
}


def apply_transfers(tx: LedgerTx, env: OpEnvelope) -> Optional[Json]:
    t = env.op
    if t not in TRANSFER_OPS:
        return None

    if t == "TRANSFER_CREATE":
        return _apply_transfer_create(tx, env)
    if t == "TRANSFER_APPROVE_OWNER":
        return _apply_transfer_approve_owner(tx, env)
    if t == "TRANSFER_APPROVE_RECEIVER":
        return _apply_transfer_approve_receiver(tx, env)
    if t == "BALANCE_SEED":
        return _apply_balance_seed(tx, env)
    if t == "BALANCE_GET":
        return _apply_balance_get(tx, env)

    return None


__all__ = ["TRANSFER_OPS", "apply_transfers", "load_transfer", "new_transfer_id"]
