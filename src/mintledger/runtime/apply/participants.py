# src/mintledger/runtime/apply/participants.py
from __future__ import annotations

"""Participant registry.

state surface:
  participant:<address> -> Participant JSON

The address is the hex SHA-256 of the participant's name. Registration is
first-come-first-served on the name; nothing else binds the identity.
"""

import hashlib
from typing import Optional, Set

from mintledger.ledger import keys
from mintledger.ledger.store import LedgerTx
from mintledger.ledger.types import Participant
from mintledger.runtime.apply.common import Json, _as_str, _raw_str, _require_arg, put_participant
from mintledger.runtime.errors import Conflict
from mintledger.runtime.op_types import OpEnvelope


def derive_address(name: str) -> str:
    return hashlib.sha256(name.encode("utf-8")).hexdigest()


def _apply_participant_register(tx: LedgerTx, env: OpEnvelope) -> Json:
    name = _require_arg(_raw_str(env.arg("name")), "name")
    password_hash = _raw_str(env.arg("password_hash"))
    country = _raw_str(env.arg("country"))

    address = derive_address(name)
    if tx.exists(keys.participant_key(address)):
        raise Conflict("participant_exists", {"address": address})

    p = Participant(
        name=name,
        address=address,
        client_id=env.caller.identity(),
        password_hash=password_hash,
        country=country,
        approved=False,
        token_id="",
    )
    put_participant(tx, p)
    return {"applied": "PARTICIPANT_REGISTER", "address": address}


def _apply_participant_exists(tx: LedgerTx, env: OpEnvelope) -> Json:
    address = _as_str(env.arg("address"))
    return {"address": address, "exists": bool(address) and tx.exists(keys.participant_key(address))}


PARTICIPANT_OPS: Set[str] = {
    "PARTICIPANT_REGISTER",
    "PARTICIPANT_EXISTS",
}


def apply_participants(tx: LedgerTx, env: OpEnvelope) -> Optional[Json]:
    t = env.op
    if t not in PARTICIPANT_OPS:
        return None

    if t == "PARTICIPANT_REGISTER":
        return _apply_participant_register(tx, env)
    if t == "PARTICIPANT_EXISTS":
        return _apply_participant_exists(tx, env)

    return None


__all__ = ["PARTICIPANT_OPS", "apply_participants", "derive_address"]
