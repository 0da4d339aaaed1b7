from __future__ import annotations

import hashlib
from typing import Any, Dict, Optional, Tuple

from mintledger.ledger.store import LedgerStore, MemoryLedgerStore
from mintledger.runtime.engine import WorkflowEngine
from mintledger.runtime.engine_config import engine_config_for_tests
from mintledger.runtime.op_types import CallerContext

Json = Dict[str, Any]

ADMIN_ORG = "Org1MSP"
USER_ORG = "Org2MSP"


def pw(raw: str) -> str:
    """Hex SHA-256 of a raw password, the form every operation expects.

    TEST ONLY.
    """
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


def admin_caller(client_id: str = "admin") -> CallerContext:
    return CallerContext(client_id=client_id, org=ADMIN_ORG)


def user_caller(client_id: str) -> CallerContext:
    return CallerContext(client_id=client_id, org=USER_ORG)


def make_engine(*, pool_size: Optional[int] = 25, store: Optional[LedgerStore] = None) -> WorkflowEngine:
    """Engine over a fresh store, with the pool initialized unless pool_size is None."""
    eng = WorkflowEngine(store=store if store is not None else MemoryLedgerStore(), config=engine_config_for_tests())
    if pool_size is not None:
        eng.execute("TOKEN_POOL_INIT", admin_caller(), size=int(pool_size))
    return eng


def onboard_participant(
    eng: WorkflowEngine,
    name: str,
    *,
    password: str = "pw",
    country: str = "NL",
    code: str = "654321",
) -> Tuple[str, CallerContext, str]:
    """Register, request and approve a token for `name`.

    Returns (address, caller, token_id).
    """
    caller = user_caller(f"{name}-cred")
    address = eng.execute("PARTICIPANT_REGISTER", caller, name=name, password_hash=pw(password), country=country)[
        "address"
    ]
    eng.execute(
        "TOKEN_REQUEST",
        caller,
        address=address,
        name=name,
        password_hash=pw(password),
        country=country,
        validation_code=code,
    )
    token_id = eng.execute("TOKEN_APPROVE", admin_caller(), address=address)["token_id"]
    return address, caller, token_id


def fund_mint_pool(eng: WorkflowEngine, address: str, caller: CallerContext, amount: int, *, password: str = "pw") -> Json:
    req = eng.execute("MINT_REQUEST", caller, address=address, password_hash=pw(password), amount=amount)
    return eng.execute("MINT_APPROVE", admin_caller(), request_id=req["request_id"])


__all__ = [
    "ADMIN_ORG",
    "USER_ORG",
    "admin_caller",
    "fund_mint_pool",
    "make_engine",
    "onboard_participant",
    "pw",
    "user_caller",
]
