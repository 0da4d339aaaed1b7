from __future__ import annotations

"""Pydantic request schemas for the public API.

These exist only for HTTP input validation. Every body carries raw
passwords where the operation needs one; routes hash them before the engine
sees them.
"""

from typing import Union

from pydantic import BaseModel, Field


class ParticipantRegisterRequest(BaseModel):
    name: str = Field(..., min_length=1, description="Human-readable name; the address is derived from it")
    password: str = Field(..., description="Raw password")
    country: str = Field(default="")


class PoolInitRequest(BaseModel):
    size: int = Field(..., description="Number of tokens in the pool")


class TokenRequestBody(BaseModel):
    address: str
    name: str
    password: str
    country: str = ""
    validation_code: str = Field(..., description="Exactly six digits")


class PasswordCheck(BaseModel):
    address: str
    password: str


class MintRequestBody(BaseModel):
    address: str
    password: str
    amount: int


class RequestApproval(BaseModel):
    request_id: str


class CustomerRegisterRequest(BaseModel):
    address: str
    name: str
    password: str
    token_id: str


class OwnerApproval(BaseModel):
    request_id: str
    owner_address: str


class CustomerMintRequestBody(BaseModel):
    address: str
    token_id: str
    amount: int


class CustomerWalletRequest(BaseModel):
    address: str
    token_id: str
    password: str


class TransferCreateRequest(BaseModel):
    sender_ref: str
    receiver_ref: str
    sender_balance_key: str = ""
    receiver_balance_key: str = ""
    token_id: str
    # Decimal string; numbers are accepted and stringified.
    amount: Union[str, int, float]


class TransferApproval(BaseModel):
    approver: str


class BalanceSeedRequest(BaseModel):
    ref: str
    amount: Union[str, int, float]

