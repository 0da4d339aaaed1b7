# src/mintledger/runtime/apply/queries.py
from __future__ import annotations

"""Predicate-driven listings over transfer and participant records.

Results come from LedgerTx.query() and carry no ordering guarantee.
"""

from typing import Dict, List, Optional, Set

from mintledger.ledger.selectors import all_of, any_of, where
from mintledger.ledger.store import LedgerTx
from mintledger.ledger.types import DOC_PARTICIPANT, DOC_TRANSFER, Participant, TransferRequest, TransferStatus
from mintledger.runtime.apply.common import Json, _as_str, _require_arg, require_token
from mintledger.runtime.gates import require_token_owner
from mintledger.runtime.op_types import OpEnvelope


def _transfers(tx: LedgerTx, *preds) -> List[Json]:
    docs = tx.query(all_of(where(doc_type=DOC_TRANSFER), *preds))
    return [TransferRequest.from_json(d).to_json() for d in docs]


def participant_history(tx: LedgerTx, ref: str) -> List[Json]:
    return _transfers(tx, any_of(where(sender_ref=ref), where(receiver_ref=ref)))


def _apply_transfers_pending_owner(tx: LedgerTx, env: OpEnvelope) -> Json:
    ref = _require_arg(_as_str(env.arg("ref")), "ref")
    status = _as_str(env.arg("status")) or TransferStatus.PENDING_OWNER
    return {"transfers": _transfers(tx, where(sender_ref=ref, status=status))}


def _apply_transfers_pending_receiver(tx: LedgerTx, env: OpEnvelope) -> Json:
    ref = _require_arg(_as_str(env.arg("ref")), "ref")
    status = _as_str(env.arg("status")) or TransferStatus.PENDING_RECEIVER
    return {"transfers": _transfers(tx, where(receiver_ref=ref, status=status))}


def _apply_transfer_history_participant(tx: LedgerTx, env: OpEnvelope) -> Json:
    ref = _require_arg(_as_str(env.arg("ref")), "ref")
    return {"transfers": participant_history(tx, ref)}


def _apply_transfer_history_token(tx: LedgerTx, env: OpEnvelope) -> Json:
    token_id = _require_arg(_as_str(env.arg("token_id")), "token_id")
    return {"transfers": _transfers(tx, where(token_id=token_id))}


def _apply_token_participants_transfers(tx: LedgerTx, env: OpEnvelope) -> Json:
    token_id = _require_arg(_as_str(env.arg("token_id")), "token_id")
    token = require_token(tx, token_id)
    require_token_owner(token, _as_str(env.arg("owner_address")))

    # Participant records have no token_transfer_id field, so this matches
    # nothing. Kept as-is; see DESIGN.md.
    docs = tx.query(where(doc_type=DOC_PARTICIPANT, token_transfer_id=token_id))
    participants = [Participant.from_json(d) for d in docs]

    per_participant: Dict[str, List[Json]] = {}
    for p in participants:
        per_participant[p.address] = participant_history(tx, p.address)

    return {
        "token_id": token_id,
        "participant_count": len(participants),
        "participants": [p.public_view() for p in participants],
        "participant_transfers": per_participant,
    }


QUERY_OPS: Set[str] = {
    "TRANSFERS_PENDING_OWNER",
    "TRANSFERS_PENDING_RECEIVER",
    "TRANSFER_HISTORY_PARTICIPANT",
    "TRANSFER_HISTORY_TOKEN",
    "TOKEN_PARTICIPANTS_TRANSFERS",
}


def apply_queries(tx: LedgerTx, env: OpEnvelope) -> Optional[Json]:
    t = env.op
    if t not in QUERY_OPS:
        return None

    if t == "TRANSFERS_PENDING_OWNER":
        return _apply_transfers_pending_owner(tx, env)
    if t == "TRANSFERS_PENDING_RECEIVER":
        return _apply_transfers_pending_receiver(tx, env)
    if t == "TRANSFER_HISTORY_PARTICIPANT":
        return _apply_transfer_history_participant(tx, env)
    if t == "TRANSFER_HISTORY_TOKEN":
        return _apply_transfer_history_token(tx, env)
    if t == "TOKEN_PARTICIPANTS_TRANSFERS":
        return _apply_token_participants_transfers(tx, env)

    return None


__all__ = ["QUERY_OPS", "apply_queries", "participant_history"]
