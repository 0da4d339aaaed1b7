# src/mintledger/runtime/engine_config.py
from __future__ import annotations

import json
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, Optional

Json = Dict[str, Any]


def _as_int(v: Any, default: int) -> int:
    try:
        return int(v)
    except Exception:
        return int(default)


def _as_str(v: Any, default: str) -> str:
    if v is None:
        return str(default)
    s = str(v)
    return s if s.strip() else str(default)


def _as_bool(v: Any, default: bool) -> bool:
    if v is None:
        return bool(default)
    if isinstance(v, bool):
        return v
    s = str(v).strip().lower()
    if s in {"1", "true", "yes", "y", "on"}:
        return True
    if s in {"0", "false", "no", "n", "off"}:
        return False
    return bool(default)


@dataclass(frozen=True)
class EngineConfig:
    mode: str  # "dev" | "test" | "prod"

    # Organization tag whose callers may run admin-only operations.
    admin_org: str
    token_pool_size: int

    store_backend: str  # "memory" | "sqlite"
    db_path: str
    auto_init_pool: bool

    api_host: str
    api_port: int

    log_level: str


_ALLOWED_MODES = {"dev", "test", "prod"}
_ALLOWED_BACKENDS = {"memory", "sqlite"}
_ALLOWED_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def validate_engine_config(cfg: EngineConfig) -> None:
    """Fail-fast validation for operator config."""

    mode = str(cfg.mode or "").strip().lower()
    if mode not in _ALLOWED_MODES:
        raise ValueError(f"mode must be one of {_ALLOWED_MODES}; got: {cfg.mode!r}")

    if not isinstance(cfg.admin_org, str) or not cfg.admin_org.strip():
        raise ValueError("admin_org must be a non-empty string")

    if int(cfg.token_pool_size) <= 0:
        raise ValueError(f"token_pool_size must be > 0; got: {cfg.token_pool_size}")

    backend = str(cfg.store_backend or "").strip().lower()
    if backend not in _ALLOWED_BACKENDS:
        raise ValueError(f"store_backend must be one of {_ALLOWED_BACKENDS}; got: {cfg.store_backend!r}")

    if backend == "sqlite" and (not isinstance(cfg.db_path, str) or not cfg.db_path.strip()):
        raise ValueError("db_path must be a non-empty string when store_backend is 'sqlite'")

    # An in-memory ledger in prod silently loses every record on restart.
    if mode == "prod" and backend == "memory":
        raise ValueError("store_backend 'memory' is not allowed in prod mode")

    if int(cfg.api_port) <= 0 or int(cfg.api_port) > 65535:
        raise ValueError(f"api_port must be 1..65535; got: {cfg.api_port}")

    if str(cfg.log_level or "").strip().upper() not in _ALLOWED_LEVELS:
        raise ValueError(f"log_level must be one of {_ALLOWED_LEVELS}; got: {cfg.log_level!r}")


def default_engine_config() -> EngineConfig:
    return EngineConfig(
        mode="dev",
        admin_org="Org1MSP",
        token_pool_size=25,
        store_backend="memory",
        db_path="./data/mintledger.db",
        auto_init_pool=True,
        api_host="127.0.0.1",
        api_port=8000,
        log_level="INFO",
    )


def _from_mapping(raw: Json, base: EngineConfig) -> EngineConfig:
    return EngineConfig(
        mode=_as_str(raw.get("mode"), base.mode).strip().lower(),
        admin_org=_as_str(raw.get("admin_org"), base.admin_org),
        token_pool_size=_as_int(raw.get("token_pool_size"), base.token_pool_size),
        store_backend=_as_str(raw.get("store_backend"), base.store_backend).strip().lower(),
        db_path=_as_str(raw.get("db_path"), base.db_path),
        auto_init_pool=_as_bool(raw.get("auto_init_pool"), base.auto_init_pool),
        api_host=_as_str(raw.get("api_host"), base.api_host),
        api_port=_as_int(raw.get("api_port"), base.api_port),
        log_level=_as_str(raw.get("log_level"), base.log_level).strip().upper(),
    )


def read_engine_config_file(path: str) -> EngineConfig:
    p = Path(path)
    raw = json.loads(p.read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        raise ValueError("engine config must be a JSON object")
    return _from_mapping(raw, default_engine_config())


_ENV_FIELDS = {
    "mode": "MINTLEDGER_MODE",
    "admin_org": "MINTLEDGER_ADMIN_ORG",
    "token_pool_size": "MINTLEDGER_TOKEN_POOL_SIZE",
    "store_backend": "MINTLEDGER_STORE_BACKEND",
    "db_path": "MINTLEDGER_DB_PATH",
    "auto_init_pool": "MINTLEDGER_AUTO_INIT_POOL",
    "api_host": "MINTLEDGER_API_HOST",
    "api_port": "MINTLEDGER_API_PORT",
    "log_level": "MINTLEDGER_LOG_LEVEL",
}


def apply_env_overrides(cfg: EngineConfig) -> EngineConfig:
    raw = {name: os.environ.get(var) for name, var in _ENV_FIELDS.items() if os.environ.get(var) is not None}
    if not raw:
        return cfg
    return _from_mapping(raw, cfg)


def load_engine_config(*, config_path: Optional[str] = None) -> EngineConfig:
    p = config_path or os.environ.get("MINTLEDGER_CONFIG_PATH")
    cfg = read_engine_config_file(p) if p else default_engine_config()
    cfg = apply_env_overrides(cfg)
    validate_engine_config(cfg)
    return cfg


def engine_config_for_tests(**overrides: Any) -> EngineConfig:
    """Memory-backed config for tests; no env or file lookups."""
    cfg = replace(default_engine_config(), mode="test")
    if overrides:
        cfg = replace(cfg, **overrides)
    validate_engine_config(cfg)
    return cfg


__all__ = [
    "EngineConfig",
    "apply_env_overrides",
    "default_engine_config",
    "load_engine_config",
    "read_engine_config_file",
    "engine_config_for_tests",
    "validate_engine_config",
]
