# src/mintledger/ledger/selectors.py
from __future__ import annotations

"""Predicate builders for LedgerTx.query().

These play the role of a rich-query selector: a predicate receives one decoded
JSON document and says whether it matches.
"""

from typing import Any, Callable, Dict

Json = Dict[str, Any]
Predicate = Callable[[Json], bool]

_MISSING = object()


def where(**fields: Any) -> Predicate:
    """Match documents whose fields all equal the given values.

    A field absent from the document never matches, even against None.
    """

    def _pred(doc: Json) -> bool:
        for name, want in fields.items():
            got = doc.get(name, _MISSING)
            if got is _MISSING or got != want:
                return False
        return True

    return _pred


def any_of(*preds: Predicate) -> Predicate:
    def _pred(doc: Json) -> bool:
        return any(p(doc) for p in preds)

    return _pred


def all_of(*preds: Predicate) -> Predicate:
    def _pred(doc: Json) -> bool:
        return all(p(doc) for p in preds)

    return _pred


__all__ = ["all_of", "any_of", "where"]
