from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass
class WorkflowError(Exception):
    """Canonical error type for operation failures.

    commit_writes marks the one failure whose buffered writes are still
    committed (a transfer rejected for insufficient funds).
    """

    code: str
    reason: str
    details: Any | None = None
    commit_writes: bool = False

    def __str__(self) -> str:
        if self.details is None:
            return f"{self.code}:{self.reason}"
        return f"{self.code}:{self.reason}:{self.details}"


class NotFound(WorkflowError):
    def __init__(self, reason: str, details: Any | None = None) -> None:
        super().__init__("not_found", reason, details)


class Conflict(WorkflowError):
    def __init__(self, reason: str, details: Any | None = None) -> None:
        super().__init__("conflict", reason, details)


class Unauthorized(WorkflowError):
    def __init__(self, reason: str, details: Any | None = None) -> None:
        super().__init__("unauthorized", reason, details)


class ValidationError(WorkflowError):
    def __init__(self, reason: str, details: Any | None = None) -> None:
        super().__init__("validation", reason, details)


class InsufficientFunds(WorkflowError):
    def __init__(self, reason: str, details: Any | None = None, *, commit_writes: bool = False) -> None:
        super().__init__("insufficient_funds", reason, details, commit_writes)


class UnknownOperation(WorkflowError):
    def __init__(self, op: str) -> None:
        super().__init__("unknown_op", "op_not_implemented", {"op": op})


__all__ = [
    "Conflict",
    "InsufficientFunds",
    "NotFound",
    "Unauthorized",
    "UnknownOperation",
    "ValidationError",
    "WorkflowError",
]
