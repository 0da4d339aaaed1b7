from __future__ import annotations

import logging

import pytest

from mintledger.ledger import keys
from mintledger.ledger.store import MemoryLedgerStore, MvccReadConflict
from mintledger.runtime.dispatch import SUPPORTED_OPS, apply_op
from mintledger.runtime.engine import WorkflowEngine
from mintledger.runtime.errors import Conflict, UnknownOperation, WorkflowError
from mintledger.runtime.op_types import OpEnvelope
from mintledger.testing.workflows import admin_caller, make_engine, onboard_participant, pw, user_caller


def test_unknown_op_fails_closed(engine) -> None:
    with pytest.raises(UnknownOperation) as e:
        engine.execute("DELETE_EVERYTHING", admin_caller())
    assert e.value.code == "unknown_op"


def test_op_names_are_case_insensitive(engine) -> None:
    out = engine.execute("participant_register", user_caller("c"), name="Zed", password_hash=pw("x"), country="")
    assert out["applied"] == "PARTICIPANT_REGISTER"


def test_every_supported_op_is_claimed(engine) -> None:
    # Each name reaches an applier: it fails on its own checks, never as unknown_op.
    for op in sorted(SUPPORTED_OPS):
        try:
            engine.execute(op, user_caller("probe"))
        except UnknownOperation:
            pytest.fail(f"{op} not claimed")
        except WorkflowError:
            pass


def test_failed_op_discards_all_writes(engine) -> None:
    before = {k: engine.store.get(k) for k in engine.store.keys()}
    with pytest.raises(Conflict):
        engine.execute("TOKEN_APPROVE", admin_caller(), address="nobody")
    after = {k: engine.store.get(k) for k in engine.store.keys()}
    assert before == after


def test_unexpected_exception_is_wrapped() -> None:
    class Boom(MemoryLedgerStore):
        def read_row(self, key):
            raise RuntimeError("disk on fire")

    store = Boom()
    env = OpEnvelope(op="PARTICIPANT_EXISTS", caller=user_caller("x"), args={"address": "a"})
    with pytest.raises(WorkflowError) as e:
        apply_op(store.begin(), env)
    assert e.value.code == "domain_error"
    assert e.value.reason == "RuntimeError"
    assert isinstance(e.value.__cause__, RuntimeError)


def test_concurrent_allocation_conflicts_instead_of_double_assigning() -> None:
    eng = make_engine(pool_size=1)
    addrs = []
    for name in ("A", "B"):
        caller = user_caller(name)
        a = eng.execute("PARTICIPANT_REGISTER", caller, name=name, password_hash=pw("pw"), country="")["address"]
        eng.execute(
            "TOKEN_REQUEST", caller, address=a, name=name, password_hash=pw("pw"), country="", validation_code="123456"
        )
        addrs.append(a)

    # Two approvals computed against the same snapshot.
    envs = [eng.envelope("TOKEN_APPROVE", admin_caller(), {"address": a}) for a in addrs]
    txs = [eng.store.begin() for _ in envs]
    outs = [apply_op(tx, env) for tx, env in zip(txs, envs)]
    assert outs[0]["token_id"] == outs[1]["token_id"] == "token_1"

    eng.store.commit(txs[0])
    with pytest.raises(MvccReadConflict):
        eng.store.commit(txs[1])

    token = eng.store.get(keys.token_key("token_1"))
    assert token["owner"] == addrs[0]
    assert eng.store.get(keys.participant_key(addrs[1]))["token_id"] == ""


class _ListHandler(logging.Handler):
    def __init__(self) -> None:
        super().__init__()
        self.lines: list[str] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.lines.append(record.getMessage())


def test_engine_logs_rejections_without_secrets(engine) -> None:
    address, caller, _tid = onboard_participant(engine, "Alice")

    logger = logging.getLogger("mintledger.engine")
    handler = _ListHandler()
    old_level = logger.level
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    try:
        engine.execute("TOKEN_ACCESS", caller, address=address, password_hash=pw("pw"))
        with pytest.raises(WorkflowError):
            engine.execute("TOKEN_ACCESS", caller, address=address, password_hash=pw("bad"))
    finally:
        logger.removeHandler(handler)
        logger.setLevel(old_level)

    text = "\n".join(handler.lines)
    assert '"event":"op_applied"' in text
    assert '"event":"op_rejected"' in text
    assert pw("pw") not in text
    assert pw("bad") not in text


def test_engine_defaults_to_memory_store() -> None:
    eng = WorkflowEngine()
    assert isinstance(eng.store, MemoryLedgerStore)
    assert eng.config.admin_org == "Org1MSP"
