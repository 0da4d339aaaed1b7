import os
from dataclasses import dataclass


def _is_truthy(v: str | None) -> bool:
    if v is None:
        return False
    return v.strip().lower() in {"1", "true", "yes", "y", "on"}


@dataclass(frozen=True)
class ApiConfig:
    mode: str  # "dev" | "test" | "prod"
    docs_enabled: bool
    max_request_bytes: int


def load_api_config() -> ApiConfig:
    mode = os.getenv("MINTLEDGER_MODE", "dev").strip().lower()

    docs_raw = os.getenv("MINTLEDGER_API_DOCS")
    # Docs are off in prod unless explicitly enabled.
    docs_enabled = _is_truthy(docs_raw) if docs_raw is not None else mode != "prod"

    try:
        max_bytes = int((os.getenv("MINTLEDGER_MAX_REQUEST_BYTES") or "65536").strip())
    except ValueError:
        max_bytes = 65536

    return ApiConfig(mode=mode, docs_enabled=docs_enabled, max_request_bytes=max(1, max_bytes))
