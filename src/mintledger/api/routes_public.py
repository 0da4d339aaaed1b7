# src/mintledger/api/routes_public.py
from __future__ import annotations

from fastapi import APIRouter

from mintledger.api.routes_public_parts.customers import router as customers_router
from mintledger.api.routes_public_parts.health import router as health_router
from mintledger.api.routes_public_parts.history import router as history_router
from mintledger.api.routes_public_parts.mint import router as mint_router
from mintledger.api.routes_public_parts.participants import router as participants_router
from mintledger.api.routes_public_parts.tokens import router as tokens_router
from mintledger.api.routes_public_parts.transfers import router as transfers_router

public_router = APIRouter()

# Versioned API surface
public_router.include_router(health_router, prefix="/v1", tags=["health"])
public_router.include_router(participants_router, prefix="/v1", tags=["participants"])
public_router.include_router(tokens_router, prefix="/v1", tags=["tokens"])
public_router.include_router(mint_router, prefix="/v1", tags=["mint"])
public_router.include_router(customers_router, prefix="/v1", tags=["customers"])
# history before transfers so /transfers/pending/* and /transfers/history/* match first
public_router.include_router(history_router, prefix="/v1", tags=["history"])
public_router.include_router(transfers_router, prefix="/v1", tags=["transfers"])
