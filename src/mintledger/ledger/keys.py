# src/mintledger/ledger/keys.py
from __future__ import annotations

"""mintledger.ledger.keys

Single encoder/decoder for ledger keys.

Layout:
  <namespace>:<part>[:<part>...]

Every part is percent-encoded with `quote(part, safe="")` so a part may
contain ":" (or any other byte) without making the key ambiguous. Namespaces
never contain ":" and no namespace equals another namespace plus ":", so each
entity type owns a disjoint prefix and a range scan over `prefix(ns)` never
crosses entity types.
"""

from dataclasses import dataclass
from typing import Tuple
from urllib.parse import quote, unquote

SEP = ":"

NS_PARTICIPANT = "participant"
NS_TOKEN = "token"
NS_TOKEN_REQUEST = "tokenrequest"
NS_MINT_REQUEST = "mintrequest"
NS_CUSTOMER = "customer"
NS_CUSTOMER_REQUEST = "custreq"
NS_CUSTOMER_MINT_REQUEST = "custmintreq"
NS_TRANSFER = "transfer"
NS_BALANCE = "balance"
NS_META = "meta"

NAMESPACES = frozenset(
    {
        NS_PARTICIPANT,
        NS_TOKEN,
        NS_TOKEN_REQUEST,
        NS_MINT_REQUEST,
        NS_CUSTOMER,
        NS_CUSTOMER_REQUEST,
        NS_CUSTOMER_MINT_REQUEST,
        NS_TRANSFER,
        NS_BALANCE,
        NS_META,
    }
)

# Arity of each namespace (number of parts after the namespace).
_ARITY = {
    NS_PARTICIPANT: 1,
    NS_TOKEN: 1,
    NS_TOKEN_REQUEST: 1,
    NS_MINT_REQUEST: 2,
    NS_CUSTOMER: 2,
    NS_CUSTOMER_REQUEST: 2,
    NS_CUSTOMER_MINT_REQUEST: 2,
    NS_TRANSFER: 1,
    NS_BALANCE: 1,
    NS_META: 1,
}


class LedgerKeyError(ValueError):
    """Raised when a string is not a well-formed ledger key."""


@dataclass(frozen=True)
class LedgerKey:
    namespace: str
    parts: Tuple[str, ...]

    def encode(self) -> str:
        if self.namespace not in NAMESPACES:
            raise LedgerKeyError(f"unknown namespace: {self.namespace!r}")
        if len(self.parts) != _ARITY[self.namespace]:
            raise LedgerKeyError(f"namespace {self.namespace!r} takes {_ARITY[self.namespace]} part(s), got {len(self.parts)}")
        return SEP.join([self.namespace, *(quote(str(p), safe="") for p in self.parts)])

    def __str__(self) -> str:
        return self.encode()


def decode(key: str) -> LedgerKey:
    if not isinstance(key, str) or SEP not in key:
        raise LedgerKeyError(f"malformed key: {key!r}")
    ns, *raw_parts = key.split(SEP)
    if ns not in NAMESPACES:
        raise LedgerKeyError(f"unknown namespace: {ns!r}")
    if len(raw_parts) != _ARITY[ns]:
        raise LedgerKeyError(f"namespace {ns!r} takes {_ARITY[ns]} part(s), got {len(raw_parts)}")
    return LedgerKey(ns, tuple(unquote(p) for p in raw_parts))


def try_decode(key: str, namespace: str) -> LedgerKey | None:
    """Decode `key` if it is a well-formed key in `namespace`, else None."""
    try:
        k = decode(key)
    except LedgerKeyError:
        return None
    return k if k.namespace == namespace else None


def prefix(namespace: str) -> str:
    if namespace not in NAMESPACES:
        raise LedgerKeyError(f"unknown namespace: {namespace!r}")
    return namespace + SEP


# ---------------------------------------------------------------------------
# Typed constructors (one per entity)
# ---------------------------------------------------------------------------

def participant_key(address: str) -> str:
    return LedgerKey(NS_PARTICIPANT, (address,)).encode()


def token_key(token_id: str) -> str:
    return LedgerKey(NS_TOKEN, (token_id,)).encode()


def token_request_key(address: str) -> str:
    return LedgerKey(NS_TOKEN_REQUEST, (address,)).encode()


def mint_request_key(token_id: str, address: str) -> str:
    return LedgerKey(NS_MINT_REQUEST, (token_id, address)).encode()


def customer_key(address: str, token_id: str) -> str:
    return LedgerKey(NS_CUSTOMER, (address, token_id)).encode()


def customer_request_key(address: str, token_id: str) -> str:
    return LedgerKey(NS_CUSTOMER_REQUEST, (address, token_id)).encode()


def customer_mint_request_key(address: str, token_id: str) -> str:
    return LedgerKey(NS_CUSTOMER_MINT_REQUEST, (address, token_id)).encode()


def transfer_key(transfer_id: str) -> str:
    return LedgerKey(NS_TRANSFER, (transfer_id,)).encode()


def balance_key(ref: str) -> str:
    return LedgerKey(NS_BALANCE, (ref,)).encode()


def meta_key(name: str) -> str:
    return LedgerKey(NS_META, (name,)).encode()


def token_id_for_index(i: int) -> str:
    """Token ids are `token_<i>` for i in 1..N."""
    return f"token_{int(i)}"


__all__ = [
    "LedgerKey",
    "LedgerKeyError",
    "NAMESPACES",
    "NS_BALANCE",
    "NS_CUSTOMER",
    "NS_CUSTOMER_MINT_REQUEST",
    "NS_CUSTOMER_REQUEST",
    "NS_META",
    "NS_MINT_REQUEST",
    "NS_PARTICIPANT",
    "NS_TOKEN",
    "NS_TOKEN_REQUEST",
    "NS_TRANSFER",
    "balance_key",
    "customer_key",
    "customer_mint_request_key",
    "customer_request_key",
    "decode",
    "meta_key",
    "mint_request_key",
    "participant_key",
    "prefix",
    "token_id_for_index",
    "token_key",
    "token_request_key",
    "transfer_key",
    "try_decode",
]
