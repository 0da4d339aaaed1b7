from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Ensure local "src/" takes precedence over any globally-installed "mintledger" package.
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

src_str = str(SRC)
if src_str not in sys.path:
    sys.path.insert(0, src_str)

from mintledger.testing.workflows import admin_caller, make_engine  # noqa: E402


@pytest.fixture()
def engine():
    """Memory-backed engine with a 25-token pool."""
    return make_engine(pool_size=25)


@pytest.fixture()
def admin():
    return admin_caller()


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch):
    for var in (
        "MINTLEDGER_CONFIG_PATH",
        "MINTLEDGER_MODE",
        "MINTLEDGER_ADMIN_ORG",
        "MINTLEDGER_TOKEN_POOL_SIZE",
        "MINTLEDGER_STORE_BACKEND",
        "MINTLEDGER_DB_PATH",
        "MINTLEDGER_AUTO_INIT_POOL",
        "MINTLEDGER_API_HOST",
        "MINTLEDGER_API_PORT",
        "MINTLEDGER_LOG_LEVEL",
        "MINTLEDGER_MAX_REQUEST_BYTES",
        "MINTLEDGER_SIZE_LIMIT_DISABLE",
        "MINTLEDGER_API_DOCS",
    ):
        monkeypatch.delenv(var, raising=False)
