from __future__ import annotations

import pytest

from mintledger.ledger.selectors import any_of, where
from mintledger.ledger.store import MemoryLedgerStore, MvccReadConflict, TxClosed


def _seed(store: MemoryLedgerStore, **items) -> None:
    tx = store.begin()
    for k, v in items.items():
        tx.put(k, v)
    store.commit(tx)


def test_reads_see_own_writes_and_discard_leaves_no_trace() -> None:
    store = MemoryLedgerStore()
    tx = store.begin()
    tx.put("meta:a", {"n": 1})
    assert tx.get("meta:a") == {"n": 1}
    tx.discard()

    assert store.get("meta:a") is None
    assert store.keys() == []


def test_range_is_key_ordered_and_merges_pending_writes() -> None:
    store = MemoryLedgerStore()
    _seed(store, **{"token:token_2": {"i": 2}, "token:token_1": {"i": 1}, "participant:x": {"p": 1}})

    tx = store.begin()
    tx.put("token:token_0", {"i": 0})
    got = [k for k, _ in tx.range_prefix("token:")]
    assert got == ["token:token_0", "token:token_1", "token:token_2"]


def test_point_read_conflict_aborts_commit() -> None:
    store = MemoryLedgerStore()
    _seed(store, **{"meta:counter": {"n": 0}})

    t1 = store.begin()
    t2 = store.begin()
    n1 = t1.get("meta:counter")["n"]
    n2 = t2.get("meta:counter")["n"]
    t1.put("meta:counter", {"n": n1 + 1})
    t2.put("meta:counter", {"n": n2 + 1})

    store.commit(t1)
    with pytest.raises(MvccReadConflict):
        store.commit(t2)

    assert store.get("meta:counter") == {"n": 1}


def test_absent_key_read_conflicts_when_created_concurrently() -> None:
    store = MemoryLedgerStore()
    t1 = store.begin()
    t2 = store.begin()
    assert not t1.exists("participant:abc")
    assert not t2.exists("participant:abc")
    t1.put("participant:abc", {"name": "one"})
    t2.put("participant:abc", {"name": "two"})

    store.commit(t1)
    with pytest.raises(MvccReadConflict):
        store.commit(t2)
    assert store.get("participant:abc") == {"name": "one"}


def test_range_read_conflict_on_new_key_in_range() -> None:
    store = MemoryLedgerStore()
    _seed(store, **{"tokenrequest:a": {"s": "PENDING"}})

    t1 = store.begin()
    list(t1.range_prefix("tokenrequest:"))
    t1.put("meta:x", {"seen": 1})

    _seed(store, **{"tokenrequest:b": {"s": "PENDING"}})

    with pytest.raises(MvccReadConflict):
        store.commit(t1)


def test_read_only_transaction_never_conflicts() -> None:
    store = MemoryLedgerStore()
    _seed(store, **{"meta:a": {"n": 1}})
    tx = store.begin()
    tx.get("meta:a")
    _seed(store, **{"meta:a": {"n": 2}})
    store.commit(tx)


def test_query_matches_dicts_only_and_sees_pending_writes() -> None:
    store = MemoryLedgerStore()
    _seed(
        store,
        **{
            "transfer:t1": {"doc_type": "transfer_request", "sender_ref": "a", "receiver_ref": "b"},
            "transfer:t2": {"doc_type": "transfer_request", "sender_ref": "c", "receiver_ref": "a"},
            "balance:a": "50",
        },
    )
    tx = store.begin()
    tx.put("transfer:t3", {"doc_type": "transfer_request", "sender_ref": "z", "receiver_ref": "y"})
    got = tx.query(any_of(where(sender_ref="a"), where(receiver_ref="a")))
    assert {d["sender_ref"] for d in got} == {"a", "c"}

    got = tx.query(where(sender_ref="z"))
    assert len(got) == 1


def test_closed_transaction_rejects_use() -> None:
    store = MemoryLedgerStore()
    tx = store.begin()
    tx.put("meta:a", {"n": 1})
    store.commit(tx)
    with pytest.raises(TxClosed):
        tx.get("meta:a")
    with pytest.raises(TxClosed):
        store.commit(tx)


def test_versions_increase_per_write() -> None:
    store = MemoryLedgerStore()
    _seed(store, **{"meta:a": {"n": 1}})
    assert store.read_row("meta:a")[0] == 1
    _seed(store, **{"meta:a": {"n": 2}})
    assert store.read_row("meta:a")[0] == 2
