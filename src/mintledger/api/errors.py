from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.responses import JSONResponse

from mintledger.ledger.store import MvccReadConflict
from mintledger.runtime.errors import WorkflowError


@dataclass(frozen=True, slots=True)
class ApiError(Exception):
    status_code: int
    code: str
    message: str
    details: Dict[str, Any]

    @staticmethod
    def bad_request(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> "ApiError":
        return ApiError(400, code, message, details or {})

    @staticmethod
    def forbidden(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> "ApiError":
        return ApiError(403, code, message, details or {})

    @staticmethod
    def not_found(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> "ApiError":
        return ApiError(404, code, message, details or {})

    @staticmethod
    def conflict(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> "ApiError":
        return ApiError(409, code, message, details or {})

    @staticmethod
    def internal(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> "ApiError":
        return ApiError(500, code, message, details or {})


# WorkflowError.code -> HTTP status. Anything unlisted is a 500.
_STATUS_BY_CODE = {
    "not_found": 404,
    "conflict": 409,
    "unauthorized": 403,
    "validation": 400,
    "insufficient_funds": 422,
    "unknown_op": 400,
}


def from_workflow_error(e: WorkflowError) -> ApiError:
    details = e.details if isinstance(e.details, dict) else ({} if e.details is None else {"detail": e.details})
    return ApiError(_STATUS_BY_CODE.get(e.code, 500), e.code, e.reason, details)


def from_mvcc_conflict(e: MvccReadConflict) -> ApiError:
    return ApiError.conflict("mvcc_read_conflict", "ledger changed underneath this request; retry", {"key": e.key})


def error_response(err: ApiError) -> JSONResponse:
    return JSONResponse(
        status_code=err.status_code,
        content={"ok": False, "error": {"code": err.code, "message": err.message, "details": err.details}},
    )


async def api_error_handler(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, ApiError)
    return error_response(exc)


async def workflow_error_handler(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, WorkflowError)
    return error_response(from_workflow_error(exc))


async def mvcc_conflict_handler(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, MvccReadConflict)
    return error_response(from_mvcc_conflict(exc))
