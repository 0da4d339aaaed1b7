from __future__ import annotations

from pathlib import Path

import pytest

from mintledger.ledger.sqlite_store import SqliteDB, SqliteLedgerStore
from mintledger.ledger.store import MvccReadConflict
from mintledger.testing.workflows import make_engine, onboard_participant


def _store(tmp_path: Path) -> SqliteLedgerStore:
    db = SqliteDB(path=str(tmp_path / "ledger.db"))
    db.init_schema()
    return SqliteLedgerStore(db=db)


def test_sqlite_commit_and_read_back(tmp_path: Path) -> None:
    store = _store(tmp_path)
    tx = store.begin()
    tx.put("token:token_2", {"token_id": "token_2"})
    tx.put("token:token_1", {"token_id": "token_1"})
    store.commit(tx)

    tx = store.begin()
    assert [k for k, _ in tx.range_prefix("token:")] == ["token:token_1", "token:token_2"]
    assert store.read_row("token:token_1")[0] == 1


def test_sqlite_conflicting_commit_is_rejected(tmp_path: Path) -> None:
    store = _store(tmp_path)
    seed = store.begin()
    seed.put("meta:pool", {"size": 1})
    store.commit(seed)

    t1 = store.begin()
    t2 = store.begin()
    t1.get("meta:pool")
    t2.get("meta:pool")
    t1.put("meta:pool", {"size": 2})
    t2.put("meta:pool", {"size": 3})
    store.commit(t1)
    with pytest.raises(MvccReadConflict):
        store.commit(t2)
    assert store.get("meta:pool") == {"size": 2}


def test_sqlite_schema_reopen(tmp_path: Path) -> None:
    store = _store(tmp_path)
    tx = store.begin()
    tx.put("meta:x", {"v": 1})
    store.commit(tx)

    reopened = _store(tmp_path)
    assert reopened.get("meta:x") == {"v": 1}


def test_engine_workflow_on_sqlite(tmp_path: Path) -> None:
    eng = make_engine(pool_size=3, store=_store(tmp_path))
    address, _caller, token_id = onboard_participant(eng, "Alice")
    assert token_id == "token_1"
    assert eng.store.get(f"participant:{address}")["token_id"] == "token_1"
