from __future__ import annotations

from typing import Any, Dict

from fastapi import Request

from mintledger.api.errors import ApiError
from mintledger.api.security import caller_from_request

Json = Dict[str, Any]


def _engine(request: Request):
    eng = getattr(request.app.state, "engine", None)
    if eng is None:
        raise ApiError.internal("not_ready", "engine not attached to app.state", {})
    return eng


def run_op(request: Request, op: str, *, caller_required: bool = False, **args: Any) -> Json:
    """Execute one operation for this request.

    WorkflowError and MvccReadConflict propagate to the app's exception
    handlers, which map them to HTTP statuses.
    """
    eng = _engine(request)
    caller = caller_from_request(request, required=caller_required)
    out = eng.execute(op, caller, **args)
    return {"ok": True, **out}
