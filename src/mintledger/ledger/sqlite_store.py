# src/mintledger/ledger/sqlite_store.py
from __future__ import annotations

import os
import random
import sqlite3
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Tuple

from mintledger.ledger.store import LedgerStore, LedgerTx, Row


def _now_ms() -> int:
    return int(time.time() * 1000)


def _env_int(name: str, default: int) -> int:
    try:
        raw = str(os.environ.get(name, "")).strip()
        return int(raw) if raw else int(default)
    except Exception:
        return int(default)


class SqliteDB:
    """SQLite connection manager for the ledger store.

    Every call opens its own connection, so the manager is safe to share
    across threads and processes. SQLite allows one writer at a time, and
    BEGIN IMMEDIATE can transiently fail with "database is locked" under
    contention, so write_tx() retries with bounded, jittered backoff.
    """

    SCHEMA_VERSION = 1

    def __init__(self, *, path: str) -> None:
        self.path = str(path)

    @staticmethod
    def _synchronous_pragma() -> str:
        """PRAGMA synchronous value: FULL in prod, NORMAL otherwise.

        Override with MINTLEDGER_SQLITE_SYNCHRONOUS in {OFF,NORMAL,FULL,EXTRA}.
        """
        mode = (os.environ.get("MINTLEDGER_MODE") or "prod").strip().lower()
        default = "FULL" if mode == "prod" else "NORMAL"
        raw = (os.environ.get("MINTLEDGER_SQLITE_SYNCHRONOUS") or default).strip().upper()
        if raw not in {"OFF", "NORMAL", "FULL", "EXTRA"}:
            raw = default
        return raw

    def ensure_parent_dir(self) -> None:
        Path(self.path).parent.mkdir(parents=True, exist_ok=True)

    def _connect(self) -> sqlite3.Connection:
        self.ensure_parent_dir()
        connect_timeout_s = float(_env_int("MINTLEDGER_SQLITE_CONNECT_TIMEOUT_MS", 30_000)) / 1000.0

        con = sqlite3.connect(
            self.path,
            timeout=connect_timeout_s,
            isolation_level=None,  # BEGIN/COMMIT are issued explicitly
            check_same_thread=False,
        )
        con.row_factory = sqlite3.Row

        con.execute("PRAGMA journal_mode=WAL;")
        con.execute(f"PRAGMA synchronous={self._synchronous_pragma()};")
        con.execute("PRAGMA temp_store=MEMORY;")

        busy_ms = max(0, _env_int("MINTLEDGER_SQLITE_BUSY_TIMEOUT_MS", int(connect_timeout_s * 1000)))
        con.execute(f"PRAGMA busy_timeout={busy_ms};")
        return con

    def init_schema(self) -> None:
        with self.write_tx() as con:
            con.execute(
                """
                CREATE TABLE IF NOT EXISTS meta (
                  key TEXT PRIMARY KEY,
                  value TEXT NOT NULL
                );
                """
            )
            con.execute(
                """
                CREATE TABLE IF NOT EXISTS kv (
                  key TEXT PRIMARY KEY,
                  value TEXT NOT NULL,
                  version INTEGER NOT NULL,
                  updated_ts_ms INTEGER NOT NULL
                );
                """
            )

            row = con.execute("SELECT value FROM meta WHERE key='schema_version' LIMIT 1;").fetchone()
            if row is None:
                con.execute("INSERT INTO meta(key, value) VALUES('schema_version', ?);", (str(self.SCHEMA_VERSION),))
            else:
                try:
                    v = int(str(row["value"]))
                except Exception:
                    v = 0
                if v != self.SCHEMA_VERSION:
                    raise RuntimeError(
                        f"sqlite schema_version mismatch: have={v} want={self.SCHEMA_VERSION}. "
                        "Refuse to start to avoid corrupting data."
                    )

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        con = self._connect()
        try:
            yield con
        finally:
            con.close()

    @staticmethod
    def _is_locked_error(e: Exception) -> bool:
        msg = str(e).lower()
        return ("database is locked" in msg) or ("database is busy" in msg)

    def _backoff(self, attempt: int) -> None:
        base_sleep = max(0.001, float(_env_int("MINTLEDGER_SQLITE_WRITE_BACKOFF_BASE_MS", 5)) / 1000.0)
        max_sleep = max(base_sleep, float(_env_int("MINTLEDGER_SQLITE_WRITE_BACKOFF_MAX_MS", 250)) / 1000.0)
        sleep_s = min(max_sleep, base_sleep * (2.0 ** min(attempt, 8)))
        time.sleep(sleep_s * (0.5 + random.random()))

    @contextmanager
    def write_tx(self) -> Iterator[sqlite3.Connection]:
        """Open a write transaction, retrying lock contention until a deadline.

        Only writer-lock contention is retried. Anything raised by the caller's
        block rolls the transaction back and propagates unchanged.
        """
        deadline_ts = _now_ms() + max(250, _env_int("MINTLEDGER_SQLITE_WRITE_DEADLINE_MS", 30_000))

        with self.connection() as con:
            attempt = 0
            while True:
                try:
                    con.execute("BEGIN IMMEDIATE;")
                    break
                except sqlite3.OperationalError as e:
                    if not self._is_locked_error(e) or _now_ms() >= deadline_ts:
                        raise
                    self._backoff(attempt)
                    attempt += 1

            try:
                yield con
                attempt = 0
                while True:
                    try:
                        con.execute("COMMIT;")
                        break
                    except sqlite3.OperationalError as e:
                        if not self._is_locked_error(e) or _now_ms() >= deadline_ts:
                            raise
                        self._backoff(attempt)
                        attempt += 1
            except BaseException:
                con.execute("ROLLBACK;")
                raise


class SqliteLedgerStore(LedgerStore):
    """Versioned key-value ledger persisted in one SQLite table.

    Commit-time validation and the writes run inside the same BEGIN IMMEDIATE
    transaction, so a validated read set cannot change before the writes land.
    """

    def __init__(self, *, db: SqliteDB) -> None:
        self._db = db
        self._db.init_schema()

    @staticmethod
    def _read_row_con(con: sqlite3.Connection, key: str) -> Optional[Tuple[int, str]]:
        row = con.execute("SELECT version, value FROM kv WHERE key=?;", (key,)).fetchone()
        if row is None:
            return None
        return int(row["version"]), str(row["value"])

    @staticmethod
    def _scan_rows_con(con: sqlite3.Connection, start: str, end: str) -> List[Row]:
        cur = con.execute(
            "SELECT key, version, value FROM kv WHERE key >= ? AND key < ? ORDER BY key;",
            (start, end),
        )
        return [(str(r["key"]), int(r["version"]), str(r["value"])) for r in cur.fetchall()]

    def read_row(self, key: str) -> Optional[Tuple[int, str]]:
        with self._db.connection() as con:
            return self._read_row_con(con, key)

    def scan_rows(self, start: str, end: str) -> List[Row]:
        with self._db.connection() as con:
            return self._scan_rows_con(con, start, end)

    def scan_all_rows(self) -> Iterable[Row]:
        # No ORDER BY: predicate query results carry no ordering guarantee.
        with self._db.connection() as con:
            cur = con.execute("SELECT key, version, value FROM kv;")
            return [(str(r["key"]), int(r["version"]), str(r["value"])) for r in cur.fetchall()]

    def apply_commit(self, tx: LedgerTx) -> None:
        now = _now_ms()
        with self._db.write_tx() as con:
            self.validate_reads(
                tx,
                lambda k: self._read_row_con(con, k),
                lambda s, e: self._scan_rows_con(con, s, e),
            )
            for key, payload in tx.writes.items():
                con.execute(
                    """
                    INSERT INTO kv(key, value, version, updated_ts_ms)
                    VALUES(?, ?, 1, ?)
                    ON CONFLICT(key) DO UPDATE SET
                      value=excluded.value,
                      version=kv.version + 1,
                      updated_ts_ms=excluded.updated_ts_ms;
                    """,
                    (key, payload, now),
                )


__all__ = ["SqliteDB", "SqliteLedgerStore"]
