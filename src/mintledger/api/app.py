from __future__ import annotations

from fastapi import FastAPI

from mintledger.api.config import load_api_config
from mintledger.api.errors import (
    ApiError,
    api_error_handler,
    mvcc_conflict_handler,
    workflow_error_handler,
)
from mintledger.api.routes_public import public_router
from mintledger.api.security import RequestSizeLimitMiddleware
from mintledger.ledger.store import MvccReadConflict
from mintledger.runtime.engine_boot import build_engine as _build_engine
from mintledger.runtime.errors import WorkflowError
from mintledger.runtime.structured_log import configure_structured_logging


def build_engine():
    """Build a WorkflowEngine for API runtime.

    This wrapper exists so tests can monkeypatch `mintledger.api.app.build_engine`
    without reaching into runtime modules.
    """
    return _build_engine()


def create_app(*, boot_runtime: bool = True) -> FastAPI:
    """Create the FastAPI application.

    boot_runtime:
      - True (default): load engine config and attach a WorkflowEngine
      - False: keep lightweight; callers attach app.state.engine themselves
    """
    cfg = load_api_config()

    if cfg.docs_enabled:
        app = FastAPI(title="mintledger API")
    else:
        app = FastAPI(title="mintledger API", docs_url=None, redoc_url=None, openapi_url=None)

    app.state.cfg = cfg

    if boot_runtime:
        app.state.engine = build_engine()
        configure_structured_logging(app.state.engine.config.log_level)
    else:
        app.state.engine = None

    # --- Errors ---
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(WorkflowError, workflow_error_handler)
    app.add_exception_handler(MvccReadConflict, mvcc_conflict_handler)

    # --- Middleware ---
    app.add_middleware(RequestSizeLimitMiddleware, max_bytes=cfg.max_request_bytes)

    # --- Routers ---
    app.include_router(public_router)

    return app
