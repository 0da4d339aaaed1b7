from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Request

from mintledger import __version__

router = APIRouter()

Json = Dict[str, Any]


@router.get("/health")
def health(request: Request) -> Json:
    eng = getattr(request.app.state, "engine", None)
    cfg = getattr(eng, "config", None)
    return {
        "ok": True,
        "version": __version__,
        "engine": eng is not None,
        "mode": getattr(cfg, "mode", None),
        "store_backend": getattr(cfg, "store_backend", None),
    }
