# src/mintledger/runtime/engine_boot.py

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from mintledger.ledger import keys
from mintledger.ledger.sqlite_store import SqliteDB, SqliteLedgerStore
from mintledger.ledger.store import LedgerStore, MemoryLedgerStore
from mintledger.runtime.apply.tokens import POOL_META
from mintledger.runtime.engine import WorkflowEngine
from mintledger.runtime.engine_config import EngineConfig, load_engine_config
from mintledger.runtime.op_types import CallerContext
from mintledger.runtime.structured_log import log_event

log = logging.getLogger("mintledger.boot")

# Caller used for boot-time pool initialization.
BOOT_CLIENT_ID = "mintledger-boot"


def build_store(cfg: EngineConfig) -> LedgerStore:
    if cfg.store_backend == "sqlite":
        Path(cfg.db_path).expanduser().parent.mkdir(parents=True, exist_ok=True)
        db = SqliteDB(path=cfg.db_path)
        db.init_schema()
        return SqliteLedgerStore(db=db)
    return MemoryLedgerStore()


def build_engine(cfg: Optional[EngineConfig] = None) -> WorkflowEngine:
    """
    Build a WorkflowEngine from an explicit config or, if omitted, from
    MINTLEDGER_CONFIG_PATH / env overrides.

    When auto_init_pool is set and the ledger has no pool yet, the token pool
    is created with token_pool_size tokens.
    """
    c = cfg or load_engine_config()
    engine = WorkflowEngine(store=build_store(c), config=c)

    if c.auto_init_pool and engine.store.get(keys.meta_key(POOL_META)) is None:
        engine.execute(
            "TOKEN_POOL_INIT",
            CallerContext(client_id=BOOT_CLIENT_ID, org=c.admin_org),
            size=int(c.token_pool_size),
        )
        log_event(log, "pool_initialized", size=int(c.token_pool_size), backend=c.store_backend)

    return engine


__all__ = ["build_engine", "build_store"]
