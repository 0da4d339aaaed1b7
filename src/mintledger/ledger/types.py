"""mintledger.ledger.types

Record model for everything the workflow engine persists.

Each record is a flat dataclass stored as one JSON object under one ledger key
(see mintledger.ledger.keys). Relationships are back-references: a record
stores the other record's id as a plain field, never a nested object.

Every JSON document carries a `doc_type` field so predicate queries can select
one entity type without depending on the key layout.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation, localcontext
from typing import Any, Dict, List, Optional

Json = Dict[str, Any]


DOC_PARTICIPANT = "participant"
DOC_TOKEN = "token"
DOC_TOKEN_REQUEST = "token_request"
DOC_MINT_REQUEST = "mint_request"
DOC_CUSTOMER = "customer"
DOC_CUSTOMER_REQUEST = "customer_registration_request"
DOC_CUSTOMER_MINT_REQUEST = "customer_mint_request"
DOC_TRANSFER = "transfer_request"

TOKEN_REQUEST_PENDING = "PENDING"
TOKEN_REQUEST_APPROVED = "APPROVED"


class TransferStatus:
    PENDING_OWNER = "PendingOwnerApproval"
    PENDING_RECEIVER = "PendingReceiverApproval"
    COMPLETED = "Completed"
    REJECTED = "Rejected"

    ALL = frozenset({PENDING_OWNER, PENDING_RECEIVER, COMPLETED, REJECTED})
    TERMINAL = frozenset({COMPLETED, REJECTED})

    # Forward-only chain. Terminal states have no successors.
    TRANSITIONS = {
        PENDING_OWNER: frozenset({PENDING_RECEIVER}),
        PENDING_RECEIVER: frozenset({COMPLETED, REJECTED}),
        COMPLETED: frozenset(),
        REJECTED: frozenset(),
    }

    @classmethod
    def can_transition(cls, cur: str, nxt: str) -> bool:
        return nxt in cls.TRANSITIONS.get(cur, frozenset())


def _as_str(v: Any) -> str:
    return v if isinstance(v, str) else ("" if v is None else str(v))


def _as_int(v: Any, default: int = 0) -> int:
    try:
        if isinstance(v, bool):
            return int(default)
        return int(v)
    except Exception:
        return int(default)


def _as_bool(v: Any) -> bool:
    return v is True


def _as_str_list(v: Any) -> List[str]:
    if not isinstance(v, list):
        return []
    return [str(x) for x in v if isinstance(x, str)]


def parse_decimal(raw: Any) -> Decimal:
    """Parse a finite decimal; raise ValueError on anything else."""
    if isinstance(raw, bool) or raw is None:
        raise ValueError(f"not a decimal: {raw!r}")
    if isinstance(raw, float):
        raw = repr(raw)
    try:
        d = Decimal(str(raw).strip())
    except (InvalidOperation, ValueError) as e:
        raise ValueError(f"not a decimal: {raw!r}") from e
    if not d.is_finite():
        raise ValueError(f"not a finite decimal: {raw!r}")
    return d


def format_decimal(d: Decimal) -> str:
    """Stable textual form: no exponent, no trailing fractional zeros."""
    if d == d.to_integral_value():
        return format(d.to_integral_value(), "f")
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, len(d.as_tuple().digits))
        return format(d.normalize(), "f")


@dataclass
class Participant:
    name: str
    address: str
    client_id: str
    password_hash: str
    country: str
    approved: bool = False
    token_id: str = ""
    transfer_ids: List[str] = field(default_factory=list)

    def to_json(self) -> Json:
        return {
            "doc_type": DOC_PARTICIPANT,
            "name": self.name,
            "address": self.address,
            "client_id": self.client_id,
            "approved": bool(self.approved),
            "password_hash": self.password_hash,
            "country": self.country,
            "token_id": self.token_id,
            "transfer_ids": list(self.transfer_ids),
        }

    @classmethod
    def from_json(cls, j: Json) -> "Participant":
        return cls(
            name=_as_str(j.get("name")),
            address=_as_str(j.get("address")),
            client_id=_as_str(j.get("client_id")),
            password_hash=_as_str(j.get("password_hash")),
            country=_as_str(j.get("country")),
            approved=_as_bool(j.get("approved")),
            token_id=_as_str(j.get("token_id")),
            transfer_ids=_as_str_list(j.get("transfer_ids")),
        )

    def public_view(self) -> Json:
        out = self.to_json()
        out.pop("password_hash", None)
        out.pop("client_id", None)
        return out


@dataclass
class Token:
    token_id: str
    owner: str = ""
    available: bool = True
    minted: int = 0
    transfer_ids: List[str] = field(default_factory=list)

    def to_json(self) -> Json:
        return {
            "doc_type": DOC_TOKEN,
            "token_id": self.token_id,
            "owner": self.owner,
            "available": bool(self.available),
            "minted": int(self.minted),
            "transfer_ids": list(self.transfer_ids),
        }

    @classmethod
    def from_json(cls, j: Json) -> "Token":
        return cls(
            token_id=_as_str(j.get("token_id")),
            owner=_as_str(j.get("owner")),
            available=_as_bool(j.get("available")),
            minted=_as_int(j.get("minted")),
            transfer_ids=_as_str_list(j.get("transfer_ids")),
        )


@dataclass
class TokenRequest:
    request_id: str
    address: str
    status: str = TOKEN_REQUEST_PENDING
    token_id: str = ""
    validation_code: str = ""

    def to_json(self) -> Json:
        return {
            "doc_type": DOC_TOKEN_REQUEST,
            "request_id": self.request_id,
            "address": self.address,
            "status": self.status,
            "token_id": self.token_id,
            "validation_code": self.validation_code,
        }

    @classmethod
    def from_json(cls, j: Json) -> "TokenRequest":
        return cls(
            request_id=_as_str(j.get("request_id")),
            address=_as_str(j.get("address")),
            status=_as_str(j.get("status")) or TOKEN_REQUEST_PENDING,
            token_id=_as_str(j.get("token_id")),
            validation_code=_as_str(j.get("validation_code")),
        )


@dataclass
class MintRequest:
    """Participant-level mint request; also the shape of a customer mint request."""

    request_id: str
    token_id: str
    requested_by: str
    amount: int
    approved: bool = False
    doc_type: str = DOC_MINT_REQUEST

    def to_json(self) -> Json:
        return {
            "doc_type": self.doc_type,
            "request_id": self.request_id,
            "token_id": self.token_id,
            "requested_by": self.requested_by,
            "amount": int(self.amount),
            "approved": bool(self.approved),
        }

    @classmethod
    def from_json(cls, j: Json) -> "MintRequest":
        return cls(
            request_id=_as_str(j.get("request_id")),
            token_id=_as_str(j.get("token_id")),
            requested_by=_as_str(j.get("requested_by")),
            amount=_as_int(j.get("amount")),
            approved=_as_bool(j.get("approved")),
            doc_type=_as_str(j.get("doc_type")) or cls.doc_type,
        )


@dataclass
class CustomerMintRequest(MintRequest):
    """Customer-level mint request against a token's mint pool."""

    doc_type: str = DOC_CUSTOMER_MINT_REQUEST


@dataclass
class Customer:
    address: str
    name: str
    password_hash: str
    token_id: str
    approved: bool = False
    balance: int = 0
    transfer_ids: List[str] = field(default_factory=list)
    token_transfer_ids: List[str] = field(default_factory=list)

    def to_json(self) -> Json:
        return {
            "doc_type": DOC_CUSTOMER,
            "address": self.address,
            "name": self.name,
            "password_hash": self.password_hash,
            "token_id": self.token_id,
            "approved": bool(self.approved),
            "balance": int(self.balance),
            "transfer_ids": list(self.transfer_ids),
            "token_transfer_ids": list(self.token_transfer_ids),
        }

    @classmethod
    def from_json(cls, j: Json) -> "Customer":
        return cls(
            address=_as_str(j.get("address")),
            name=_as_str(j.get("name")),
            password_hash=_as_str(j.get("password_hash")),
            token_id=_as_str(j.get("token_id")),
            approved=_as_bool(j.get("approved")),
            balance=_as_int(j.get("balance")),
            transfer_ids=_as_str_list(j.get("transfer_ids")),
            token_transfer_ids=_as_str_list(j.get("token_transfer_ids")),
        )


@dataclass
class CustomerRegistrationRequest:
    request_id: str
    address: str
    name: str
    password_hash: str
    token_id: str
    approved: bool = False

    def to_json(self) -> Json:
        return {
            "doc_type": DOC_CUSTOMER_REQUEST,
            "request_id": self.request_id,
            "address": self.address,
            "name": self.name,
            "password_hash": self.password_hash,
            "token_id": self.token_id,
            "approved": bool(self.approved),
        }

    @classmethod
    def from_json(cls, j: Json) -> "CustomerRegistrationRequest":
        return cls(
            request_id=_as_str(j.get("request_id")),
            address=_as_str(j.get("address")),
            name=_as_str(j.get("name")),
            password_hash=_as_str(j.get("password_hash")),
            token_id=_as_str(j.get("token_id")),
            approved=_as_bool(j.get("approved")),
        )

    def public_view(self) -> Json:
        out = self.to_json()
        out.pop("password_hash", None)
        return out


@dataclass
class TransferRequest:
    transfer_id: str
    token_id: str
    amount: Decimal
    sender_ref: str
    receiver_ref: str
    sender_balance_key: str
    receiver_balance_key: str
    status: str = TransferStatus.PENDING_OWNER

    def to_json(self) -> Json:
        return {
            "doc_type": DOC_TRANSFER,
            "transfer_id": self.transfer_id,
            "token_id": self.token_id,
            "amount": format_decimal(self.amount),
            "sender_ref": self.sender_ref,
            "receiver_ref": self.receiver_ref,
            "sender_balance_key": self.sender_balance_key,
            "receiver_balance_key": self.receiver_balance_key,
            "status": self.status,
        }

    @classmethod
    def from_json(cls, j: Json) -> "TransferRequest":
        return cls(
            transfer_id=_as_str(j.get("transfer_id")),
            token_id=_as_str(j.get("token_id")),
            amount=parse_decimal(j.get("amount", "0")),
            sender_ref=_as_str(j.get("sender_ref")),
            receiver_ref=_as_str(j.get("receiver_ref")),
            sender_balance_key=_as_str(j.get("sender_balance_key")),
            receiver_balance_key=_as_str(j.get("receiver_balance_key")),
            status=_as_str(j.get("status")) or TransferStatus.PENDING_OWNER,
        )


def maybe(cls: Any, j: Any) -> Optional[Any]:
    """`cls.from_json(j)` when `j` is a JSON object, else None."""
    return cls.from_json(j) if isinstance(j, dict) else None


__all__ = [
    "Customer",
    "CustomerMintRequest",
    "CustomerRegistrationRequest",
    "DOC_CUSTOMER",
    "DOC_CUSTOMER_MINT_REQUEST",
    "DOC_CUSTOMER_REQUEST",
    "DOC_MINT_REQUEST",
    "DOC_PARTICIPANT",
    "DOC_TOKEN",
    "DOC_TOKEN_REQUEST",
    "DOC_TRANSFER",
    "MintRequest",
    "Participant",
    "TOKEN_REQUEST_APPROVED",
    "TOKEN_REQUEST_PENDING",
    "Token",
    "TokenRequest",
    "TransferRequest",
    "TransferStatus",
    "format_decimal",
    "maybe",
    "parse_decimal",
]
