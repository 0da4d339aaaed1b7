from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass(frozen=True)
class CallerContext:
    """Who is calling: an enrolled credential and its organization tag.

    The credential is issued by an external identity authority; this layer
    only compares it against what was bound at registration.
    """

    client_id: str
    org: str

    def identity(self) -> str:
        return self.client_id

    def organization(self) -> str:
        return self.org


@dataclass(frozen=True)
class OpEnvelope:
    """One operation invocation as seen by the domain appliers."""

    op: str
    caller: CallerContext
    args: Dict[str, Any] = field(default_factory=dict)
    admin_org: str = "Org1MSP"

    def arg(self, name: str, default: Any = None) -> Any:
        return self.args.get(name, default)


__all__ = ["CallerContext", "OpEnvelope"]
