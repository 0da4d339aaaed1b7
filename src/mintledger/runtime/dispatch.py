# src/mintledger/runtime/dispatch.py

from __future__ import annotations

from typing import Any, Callable, Dict, Optional

from mintledger.ledger.store import LedgerTx
from mintledger.runtime.errors import UnknownOperation, ValidationError, WorkflowError
from mintledger.runtime.op_types import OpEnvelope

# Domain appliers (each returns Optional[Json]; returning None means "not claimed")
from mintledger.runtime.apply.customers import CUSTOMER_OPS, apply_customers
from mintledger.runtime.apply.mint import MINT_OPS, apply_mint
from mintledger.runtime.apply.participants import PARTICIPANT_OPS, apply_participants
from mintledger.runtime.apply.queries import QUERY_OPS, apply_queries
from mintledger.runtime.apply.tokens import TOKEN_OPS, apply_tokens
from mintledger.runtime.apply.transfers import TRANSFER_OPS, apply_transfers

Json = Dict[str, Any]
ApplyFn = Callable[[LedgerTx, OpEnvelope], Optional[Json]]


_APPLIERS: tuple[ApplyFn, ...] = (
    apply_participants,
    apply_tokens,
    apply_mint,
    apply_customers,
    apply_transfers,
    apply_queries,
)

SUPPORTED_OPS = frozenset(PARTICIPANT_OPS | TOKEN_OPS | MINT_OPS | CUSTOMER_OPS | TRANSFER_OPS | QUERY_OPS)


def normalize_op(op: Any) -> str:
    return str(op or "").strip().upper()


def apply_op(tx: LedgerTx, env: OpEnvelope) -> Json:
    """Dispatch an operation to the first domain applier that claims it."""

    t = normalize_op(env.op)
    if not t:
        raise ValidationError("missing_op", {"op": env.op})
    if t != env.op:
        env = OpEnvelope(op=t, caller=env.caller, args=env.args, admin_org=env.admin_org)

    for fn in _APPLIERS:
        try:
            out = fn(tx, env)
        except WorkflowError:
            raise
        except Exception as e:
            raise WorkflowError(
                "domain_error",
                type(e).__name__,
                {"op": t, "domain": fn.__name__, "error": str(e)},
            ) from e

        if out is not None:
            return out

    raise UnknownOperation(t)


__all__ = ["SUPPORTED_OPS", "apply_op", "normalize_op"]
