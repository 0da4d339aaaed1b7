# src/mintledger/runtime/engine.py
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from mintledger.ledger.store import LedgerStore, MemoryLedgerStore, MvccReadConflict
from mintledger.runtime.dispatch import apply_op, normalize_op
from mintledger.runtime.engine_config import EngineConfig, default_engine_config
from mintledger.runtime.errors import WorkflowError
from mintledger.runtime.op_types import CallerContext, OpEnvelope
from mintledger.runtime.structured_log import log_event

Json = Dict[str, Any]

log = logging.getLogger("mintledger.engine")

# Never echoed into log lines.
_SECRET_ARGS = frozenset({"password_hash", "password", "validation_code"})


def _loggable_args(args: Json) -> Json:
    return {k: v for k, v in args.items() if k not in _SECRET_ARGS}


class WorkflowEngine:
    """Runs one operation per ledger transaction.

    All of an operation's reads and writes commit together or not at all.
    The single exception is a WorkflowError raised with commit_writes=True,
    whose buffered writes are committed before the error is re-raised.
    MvccReadConflict propagates unchanged; retrying is the caller's call.
    """

    def __init__(self, *, store: Optional[LedgerStore] = None, config: Optional[EngineConfig] = None) -> None:
        self.config = config or default_engine_config()
        self.store = store if store is not None else MemoryLedgerStore()

    def envelope(self, op: str, caller: CallerContext, args: Json) -> OpEnvelope:
        return OpEnvelope(op=normalize_op(op), caller=caller, args=dict(args), admin_org=self.config.admin_org)

    def execute(self, op: str, caller: CallerContext, **args: Any) -> Json:
        env = self.envelope(op, caller, args)
        tx = self.store.begin()
        try:
            out = apply_op(tx, env)
        except WorkflowError as e:
            if e.commit_writes:
                self.store.commit(tx)
                log_event(
                    log,
                    "op_rejected",
                    level=logging.WARNING,
                    op=env.op,
                    code=e.code,
                    reason=e.reason,
                    committed=True,
                )
            else:
                tx.discard()
                log_event(log, "op_rejected", level=logging.INFO, op=env.op, code=e.code, reason=e.reason)
            raise
        except BaseException:
            tx.discard()
            raise

        try:
            self.store.commit(tx)
        except MvccReadConflict as e:
            log_event(log, "op_conflict", level=logging.WARNING, op=env.op, key=e.key)
            raise

        log_event(
            log,
            "op_applied",
            level=logging.DEBUG,
            op=env.op,
            caller=caller.identity(),
            writes=len(tx.writes),
            args=_loggable_args(env.args),
        )
        return out


__all__ = ["WorkflowEngine"]
