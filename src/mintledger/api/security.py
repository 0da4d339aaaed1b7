from __future__ import annotations

import hashlib
import os
from typing import Optional, Tuple

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from mintledger.api.errors import ApiError
from mintledger.runtime.op_types import CallerContext

CALLER_ID_HEADER = "x-caller-id"
CALLER_ORG_HEADER = "x-caller-org"


def _truthy(v: str | None) -> bool:
    return (v or "").strip().lower() in {"1", "true", "yes", "y", "on"}


def hash_password(raw: str) -> str:
    """Hex SHA-256 of the raw password. Raw passwords never reach the engine."""
    return hashlib.sha256(str(raw).encode("utf-8")).hexdigest()


def caller_from_request(request: Request, *, required: bool = False) -> CallerContext:
    """Caller context from the enrolled-credential headers.

    The credential is resolved by the identity authority in front of this
    service; headers are taken at face value here.
    """
    client_id = (request.headers.get(CALLER_ID_HEADER) or "").strip()
    org = (request.headers.get(CALLER_ORG_HEADER) or "").strip()
    if required and not client_id:
        raise ApiError.forbidden("caller_missing", "X-Caller-Id header is required", {})
    return CallerContext(client_id=client_id, org=org)


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    """Fail-fast request size limiter.

    - Enforces Content-Length when present.
    - Also caps buffered body size by reading body once when needed.

    Configure:
      MINTLEDGER_MAX_REQUEST_BYTES (default: 65536)
      MINTLEDGER_SIZE_LIMIT_DISABLE=1 to disable
    """

    def __init__(
        self,
        app,
        *,
        max_bytes: Optional[int] = None,
        exempt_prefixes: Tuple[str, ...] = ("/docs", "/openapi.json", "/v1/health"),
    ):
        super().__init__(app)
        self._enabled = not _truthy(os.environ.get("MINTLEDGER_SIZE_LIMIT_DISABLE"))
        if max_bytes is not None:
            self._max_bytes = int(max_bytes)
        else:
            try:
                self._max_bytes = int((os.environ.get("MINTLEDGER_MAX_REQUEST_BYTES") or "65536").strip())
            except ValueError:
                self._max_bytes = 65536
        self._exempt_prefixes = exempt_prefixes

    def _too_large(self) -> JSONResponse:
        return JSONResponse(
            status_code=413,
            content={
                "ok": False,
                "error": {"code": "request_too_large", "message": "Request body too large", "details": {}},
            },
        )

    async def dispatch(self, request: Request, call_next):
        if not self._enabled:
            return await call_next(request)

        path = request.url.path or ""
        for ex in self._exempt_prefixes:
            if path.startswith(ex):
                return await call_next(request)

        cl = request.headers.get("content-length")
        if cl:
            try:
                if int(cl) > self._max_bytes:
                    return self._too_large()
            except ValueError:
                # Malformed header; the buffered body cap below still applies.
                pass

        # Chunked bodies carry no Content-Length.
        if (request.method or "").upper() in {"POST", "PUT", "PATCH"}:
            body = await request.body()
            if body and len(body) > self._max_bytes:
                return self._too_large()

        return await call_next(request)
