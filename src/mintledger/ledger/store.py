# src/mintledger/ledger/store.py
from __future__ import annotations

import json
import threading
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Tuple

Json = Dict[str, Any]
Predicate = Callable[[Json], bool]

# (key, version, payload)
Row = Tuple[str, int, str]


def canon_json(obj: Any) -> str:
    """Canonical JSON encoding for persisted values.

    Unknown types are not coerced (no default=str): a non-JSON value leaking
    into a record is a bug and must fail loudly.
    """
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def _decode(payload: str) -> Any:
    return json.loads(payload)


def prefix_end(prefix: str) -> str:
    """Smallest string greater than every string starting with `prefix`."""
    if not prefix:
        raise ValueError("prefix must be non-empty")
    return prefix[:-1] + chr(ord(prefix[-1]) + 1)


class MvccReadConflict(RuntimeError):
    """A key or range read by a transaction changed before it committed.

    The transaction's writes were not applied. Callers may retry the whole
    operation from scratch.
    """

    def __init__(self, key: str, *, read_version: int = 0, current_version: int = 0) -> None:
        super().__init__(f"mvcc_read_conflict:{key}")
        self.key = key
        self.read_version = int(read_version)
        self.current_version = int(current_version)


class TxClosed(RuntimeError):
    pass


class LedgerStore:
    """Versioned key-value store with optimistic transactions.

    Backends implement four hooks:
      - read_row(key)            -> (version, payload) | None
      - scan_rows(start, end)    -> rows with start <= key < end, key-ordered
      - scan_all_rows()          -> every row, any order
      - apply_commit(tx)         -> validate tx reads and apply writes atomically

    Versions start at 1 on first write; an absent key reads as version 0.
    """

    def begin(self) -> "LedgerTx":
        return LedgerTx(self)

    # ---- backend hooks ----

    def read_row(self, key: str) -> Optional[Tuple[int, str]]:  # pragma: no cover
        raise NotImplementedError

    def scan_rows(self, start: str, end: str) -> List[Row]:  # pragma: no cover
        raise NotImplementedError

    def scan_all_rows(self) -> Iterable[Row]:  # pragma: no cover
        raise NotImplementedError

    def apply_commit(self, tx: "LedgerTx") -> None:  # pragma: no cover
        raise NotImplementedError

    # ---- shared helpers ----

    def commit(self, tx: "LedgerTx") -> None:
        tx._close()
        if not tx.writes:
            return
        self.apply_commit(tx)

    @staticmethod
    def validate_reads(
        tx: "LedgerTx",
        read_row: Callable[[str], Optional[Tuple[int, str]]],
        scan_rows: Callable[[str, str], List[Row]],
    ) -> None:
        for key, ver in tx.read_set.items():
            cur = read_row(key)
            cur_ver = int(cur[0]) if cur is not None else 0
            if cur_ver != ver:
                raise MvccReadConflict(key, read_version=ver, current_version=cur_ver)

        for start, end, listing in tx.range_reads:
            now = tuple((k, int(v)) for k, v, _ in scan_rows(start, end))
            if now != listing:
                raise MvccReadConflict(f"range[{start},{end})")

    def get(self, key: str) -> Any:
        """Committed value at `key` outside any transaction (None if absent)."""
        row = self.read_row(key)
        return _decode(row[1]) if row is not None else None


class LedgerTx:
    """One operation's view of the ledger.

    Reads see the transaction's own buffered writes first. Writes are buffered
    until the store commits them; a discarded transaction leaves no trace.
    """

    def __init__(self, store: LedgerStore) -> None:
        self._store = store
        self._closed = False
        self.read_set: Dict[str, int] = {}
        self.range_reads: List[Tuple[str, str, Tuple[Tuple[str, int], ...]]] = []
        self.writes: Dict[str, str] = {}

    def _check_open(self) -> None:
        if self._closed:
            raise TxClosed("transaction already committed or discarded")

    def _close(self) -> None:
        self._check_open()
        self._closed = True

    def discard(self) -> None:
        if not self._closed:
            self._closed = True
            self.writes.clear()

    @property
    def closed(self) -> bool:
        return self._closed

    # ---- point ops ----

    def get(self, key: str) -> Any:
        self._check_open()
        if key in self.writes:
            return _decode(self.writes[key])
        row = self._store.read_row(key)
        self.read_set.setdefault(key, int(row[0]) if row is not None else 0)
        return _decode(row[1]) if row is not None else None

    def exists(self, key: str) -> bool:
        return self.get(key) is not None

    def put(self, key: str, value: Any) -> None:
        self._check_open()
        if value is None:
            raise ValueError("ledger values must not be None")
        self.writes[key] = canon_json(value)

    # ---- scans ----

    def range(self, start: str, end: str) -> Iterator[Tuple[str, Any]]:
        """Key-ordered (key, value) pairs with start <= key < end."""
        self._check_open()
        rows = self._store.scan_rows(start, end)
        self.range_reads.append((start, end, tuple((k, int(v)) for k, v, _ in rows)))

        merged: Dict[str, str] = {k: p for k, _, p in rows}
        for k, p in self.writes.items():
            if start <= k < end:
                merged[k] = p
        for k in sorted(merged):
            yield k, _decode(merged[k])

    def range_prefix(self, prefix: str) -> Iterator[Tuple[str, Any]]:
        return self.range(prefix, prefix_end(prefix))

    def query(self, predicate: Predicate) -> List[Json]:
        """Decoded JSON objects matching `predicate`, in no particular order.

        Non-object values (bare balances) are never matched. Only matched keys
        join the read set; there is no phantom protection for queries.
        """
        self._check_open()
        out: List[Json] = []
        seen = set()
        for k, v, p in self._store.scan_all_rows():
            seen.add(k)
            if k in self.writes:
                doc = _decode(self.writes[k])
            else:
                doc = _decode(p)
            if isinstance(doc, dict) and predicate(doc):
                if k not in self.writes:
                    self.read_set.setdefault(k, int(v))
                out.append(doc)
        for k, p in self.writes.items():
            if k in seen:
                continue
            doc = _decode(p)
            if isinstance(doc, dict) and predicate(doc):
                out.append(doc)
        return out


class MemoryLedgerStore(LedgerStore):
    """In-memory store for tests and dev mode."""

    def __init__(self) -> None:
        self._rows: Dict[str, Tuple[int, str]] = {}
        self._lock = threading.Lock()

    def read_row(self, key: str) -> Optional[Tuple[int, str]]:
        return self._rows.get(key)

    def scan_rows(self, start: str, end: str) -> List[Row]:
        items = [(k, v, p) for k, (v, p) in list(self._rows.items()) if start <= k < end]
        items.sort(key=lambda r: r[0])
        return items

    def scan_all_rows(self) -> Iterable[Row]:
        return [(k, v, p) for k, (v, p) in list(self._rows.items())]

    def apply_commit(self, tx: LedgerTx) -> None:
        with self._lock:
            self.validate_reads(tx, self.read_row, self.scan_rows)
            for k, payload in tx.writes.items():
                cur = self._rows.get(k)
                ver = (cur[0] if cur is not None else 0) + 1
                self._rows[k] = (ver, payload)

    def keys(self) -> List[str]:
        return sorted(self._rows)


__all__ = [
    "LedgerStore",
    "LedgerTx",
    "MemoryLedgerStore",
    "MvccReadConflict",
    "TxClosed",
    "canon_json",
    "prefix_end",
]
