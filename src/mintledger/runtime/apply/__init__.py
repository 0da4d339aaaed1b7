# src/mintledger/runtime/apply/__init__.py
"""Domain-specific apply modules.

Each module claims a set of operation names and returns None for anything
else, so the dispatcher can try them in turn.
"""

from __future__ import annotations

__all__ = [
    "participants",
    "tokens",
    "mint",
    "customers",
    "transfers",
    "queries",
]
