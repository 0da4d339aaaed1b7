# src/mintledger/runtime/apply/common.py
from __future__ import annotations

from typing import Any, Dict, Optional

from mintledger.ledger import keys
from mintledger.ledger.store import LedgerTx
from mintledger.ledger.types import Customer, Participant, Token, maybe
from mintledger.runtime.errors import NotFound, ValidationError

Json = Dict[str, Any]


def _as_str(v: Any) -> str:
    return str(v).strip() if isinstance(v, (str, int)) and not isinstance(v, bool) else ""


def _raw_str(v: Any) -> str:
    """Like _as_str but without stripping (password hashes, names)."""
    return v if isinstance(v, str) else ""


def _as_amount(v: Any, *, field: str = "amount") -> int:
    """Whole-unit amount for mint requests: a positive int or digit string."""
    if isinstance(v, bool):
        raise ValidationError("invalid_amount", {"field": field, "value": v})
    if isinstance(v, int):
        n = v
    elif isinstance(v, str) and v.strip().isdigit():
        n = int(v.strip())
    else:
        raise ValidationError("invalid_amount", {"field": field, "value": v})
    if n <= 0:
        raise ValidationError("invalid_amount", {"field": field, "value": v})
    return n


def _require_arg(v: str, name: str) -> str:
    if not v:
        raise ValidationError("missing_field", {"field": name})
    return v


def load_participant(tx: LedgerTx, address: str) -> Optional[Participant]:
    return maybe(Participant, tx.get(keys.participant_key(address)))


def require_participant(tx: LedgerTx, address: str) -> Participant:
    p = load_participant(tx, address)
    if p is None:
        raise NotFound("participant_not_found", {"address": address})
    return p


def load_token(tx: LedgerTx, token_id: str) -> Optional[Token]:
    if not token_id:
        return None
    return maybe(Token, tx.get(keys.token_key(token_id)))


def require_token(tx: LedgerTx, token_id: str) -> Token:
    t = load_token(tx, token_id)
    if t is None:
        raise NotFound("token_not_found", {"token_id": token_id})
    return t


def put_token(tx: LedgerTx, token: Token) -> None:
    tx.put(keys.token_key(token.token_id), token.to_json())


def put_participant(tx: LedgerTx, p: Participant) -> None:
    tx.put(keys.participant_key(p.address), p.to_json())


def load_customer(tx: LedgerTx, address: str, token_id: str) -> Optional[Customer]:
    return maybe(Customer, tx.get(keys.customer_key(address, token_id)))


def put_customer(tx: LedgerTx, c: Customer) -> None:
    tx.put(keys.customer_key(c.address, c.token_id), c.to_json())


def request_key_in(request_id: str, namespace: str, *, what: str) -> keys.LedgerKey:
    """Decode a caller-supplied request id; unknown ids are NotFound."""
    k = keys.try_decode(str(request_id or ""), namespace)
    if k is None:
        raise NotFound(f"{what}_not_found", {"request_id": request_id})
    return k


__all__ = [
    "Json",
    "load_customer",
    "load_participant",
    "load_token",
    "put_customer",
    "put_participant",
    "put_token",
    "request_key_in",
    "require_participant",
    "require_token",
]
