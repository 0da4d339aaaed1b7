# src/mintledger/runtime/gates.py
from __future__ import annotations

"""Authorization capabilities.

Each operation asks for exactly the checks it has always performed. They are
deliberately uneven: some bind to the caller's enrolled credential, others
trust a caller-supplied approver/owner string. Do not harden one without the
others changing their observable behavior too.
"""

from mintledger.ledger.types import Participant, Token, TransferRequest
from mintledger.runtime.errors import Unauthorized
from mintledger.runtime.op_types import CallerContext, OpEnvelope


def require_admin(env: OpEnvelope) -> None:
    """Caller's organization must be the primary-authority tag."""
    if env.caller.organization() != env.admin_org:
        raise Unauthorized("admin_only", {"op": env.op, "org": env.caller.organization()})


def require_password(stored_hash: str, given_hash: str, *, subject: str) -> None:
    if stored_hash != given_hash:
        raise Unauthorized("password_mismatch", {"subject": subject})


def require_bound_caller(caller: CallerContext, participant: Participant) -> None:
    """Caller's credential must be the one bound at registration."""
    if participant.client_id != caller.identity():
        raise Unauthorized("caller_identity_mismatch", {"address": participant.address})


def require_token_owner(token: Token, claimed_owner: str) -> None:
    """`claimed_owner` is caller-supplied; compared against the current owner only."""
    if token.owner != claimed_owner:
        raise Unauthorized("not_token_owner", {"token_id": token.token_id})


def require_transfer_sender(tr: TransferRequest, approver: str) -> None:
    """`approver` is caller-supplied and not bound to the caller's credential."""
    if tr.sender_ref != approver:
        raise Unauthorized("approver_not_sender", {"transfer_id": tr.transfer_id})


def require_transfer_receiver(tr: TransferRequest, token: Token, approver: str) -> None:
    """The receiver is whoever owns the token at approval time."""
    if token.owner != approver:
        raise Unauthorized("approver_not_token_owner", {"transfer_id": tr.transfer_id, "token_id": token.token_id})


__all__ = [
    "require_admin",
    "require_bound_caller",
    "require_password",
    "require_token_owner",
    "require_transfer_receiver",
    "require_transfer_sender",
]
