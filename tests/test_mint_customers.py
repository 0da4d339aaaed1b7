from __future__ import annotations

import pytest

from mintledger.ledger import keys
from mintledger.runtime.errors import Conflict, InsufficientFunds, NotFound, Unauthorized, ValidationError
from mintledger.testing.workflows import admin_caller, fund_mint_pool, onboard_participant, pw, user_caller


def _minted(engine, token_id: str) -> int:
    return engine.store.get(keys.token_key(token_id))["minted"]


def test_mint_scenario_credits_pool(engine) -> None:
    address, caller, token_id = onboard_participant(engine, "Alice")
    fund_mint_pool(engine, address, caller, 100)
    assert _minted(engine, token_id) == 100

    info = engine.execute("WALLET_INFO", caller, address=address, password_hash=pw("pw"))
    assert info == {"address": address, "token_id": token_id, "minted": 100, "token_transfer_ids": []}


def test_mint_request_requires_password_and_bound_credential(engine) -> None:
    address, caller, _tid = onboard_participant(engine, "Alice")
    with pytest.raises(Unauthorized):
        engine.execute("MINT_REQUEST", caller, address=address, password_hash=pw("wrong"), amount=5)
    with pytest.raises(Unauthorized):
        engine.execute("MINT_REQUEST", user_caller("mallory"), address=address, password_hash=pw("pw"), amount=5)
    with pytest.raises(ValidationError):
        engine.execute("MINT_REQUEST", caller, address=address, password_hash=pw("pw"), amount=0)
    with pytest.raises(ValidationError):
        engine.execute("MINT_REQUEST", caller, address=address, password_hash=pw("pw"), amount="1.5")


def test_mint_request_resubmit_overwrites_and_approval_is_final(engine) -> None:
    address, caller, token_id = onboard_participant(engine, "Alice")
    engine.execute("MINT_REQUEST", caller, address=address, password_hash=pw("pw"), amount=10)
    engine.execute("MINT_REQUEST", caller, address=address, password_hash=pw("pw"), amount=30)

    pending = engine.execute("MINT_REQUESTS_PENDING", admin_caller())["requests"]
    assert [r["amount"] for r in pending] == [30]

    rid = pending[0]["request_id"]
    engine.execute("MINT_APPROVE", admin_caller(), request_id=rid)
    assert _minted(engine, token_id) == 30

    with pytest.raises(Conflict):
        engine.execute("MINT_APPROVE", admin_caller(), request_id=rid)
    with pytest.raises(NotFound):
        engine.execute("MINT_APPROVE", admin_caller(), request_id="mintrequest:token_9:nobody")
    with pytest.raises(NotFound):
        engine.execute("MINT_APPROVE", admin_caller(), request_id="not-a-key")
    with pytest.raises(Unauthorized):
        engine.execute("MINT_APPROVE", caller, request_id=rid)
    assert _minted(engine, token_id) == 30


def _customer(engine, owner: str, token_id: str, address: str = "cust-1", password: str = "cpw") -> str:
    rid = engine.execute(
        "CUSTOMER_REGISTER",
        user_caller(address),
        address=address,
        name="Carol",
        password_hash=pw(password),
        token_id=token_id,
    )["request_id"]
    engine.execute("CUSTOMER_REGISTRATION_APPROVE", user_caller(owner), request_id=rid, owner_address=owner)
    return address


def test_customer_registration_requires_allocated_token(engine) -> None:
    with pytest.raises(NotFound):
        engine.execute(
            "CUSTOMER_REGISTER", user_caller("c"), address="c", name="C", password_hash=pw("x"), token_id="token_5"
        )
    with pytest.raises(NotFound):
        engine.execute(
            "CUSTOMER_REGISTER", user_caller("c"), address="c", name="C", password_hash=pw("x"), token_id="token_999"
        )


def test_customer_registration_flow(engine) -> None:
    owner, _caller, token_id = onboard_participant(engine, "Alice")
    other, _c2, other_token = onboard_participant(engine, "Bob")

    args = dict(address="cust-1", name="Carol", password_hash=pw("cpw"))
    rid = engine.execute("CUSTOMER_REGISTER", user_caller("cust-1"), **args, token_id=token_id)["request_id"]
    with pytest.raises(Conflict):
        engine.execute("CUSTOMER_REGISTER", user_caller("cust-1"), **args, token_id=token_id)
    # Same address, different token: an independent request.
    engine.execute("CUSTOMER_REGISTER", user_caller("cust-1"), **args, token_id=other_token)

    with pytest.raises(Unauthorized):
        engine.execute("CUSTOMER_REGISTRATIONS_PENDING", user_caller("x"), token_id=token_id, owner_address=other)

    pending = engine.execute(
        "CUSTOMER_REGISTRATIONS_PENDING", user_caller("x"), token_id=token_id, owner_address=owner
    )["requests"]
    assert [r["request_id"] for r in pending] == [rid]
    assert "password_hash" not in pending[0]

    with pytest.raises(Unauthorized):
        engine.execute("CUSTOMER_REGISTRATION_APPROVE", user_caller("x"), request_id=rid, owner_address=other)

    out = engine.execute("CUSTOMER_REGISTRATION_APPROVE", user_caller("x"), request_id=rid, owner_address=owner)
    cust = engine.store.get(out["customer_id"])
    assert cust["approved"] is True
    assert cust["balance"] == 0

    with pytest.raises(Conflict):
        engine.execute("CUSTOMER_REGISTRATION_APPROVE", user_caller("x"), request_id=rid, owner_address=owner)
    assert engine.execute(
        "CUSTOMER_REGISTRATIONS_PENDING", user_caller("x"), token_id=token_id, owner_address=owner
    )["requests"] == []


def test_customer_mint_moves_pool_to_balance(engine) -> None:
    owner, caller, token_id = onboard_participant(engine, "Alice")
    fund_mint_pool(engine, owner, caller, 100)
    cust = _customer(engine, owner, token_id)

    rid = engine.execute("CUSTOMER_MINT_REQUEST", user_caller(cust), address=cust, token_id=token_id, amount=40)[
        "request_id"
    ]
    pending = engine.execute(
        "CUSTOMER_MINT_REQUESTS_PENDING", user_caller("x"), token_id=token_id, owner_address=owner
    )["requests"]
    assert {r["request_id"] for r in pending} == {rid}

    out = engine.execute("CUSTOMER_MINT_APPROVE", user_caller("x"), request_id=rid, owner_address=owner)
    assert out["minted"] == 60
    assert out["balance"] == 40
    assert _minted(engine, token_id) == 60

    wallet = engine.execute("CUSTOMER_WALLET", user_caller("x"), address=cust, token_id=token_id, password_hash=pw("cpw"))
    assert wallet["balance"] == 40
    assert wallet["approved"] is True

    with pytest.raises(Conflict):
        engine.execute("CUSTOMER_MINT_APPROVE", user_caller("x"), request_id=rid, owner_address=owner)


def test_customer_mint_request_resubmit_replaces(engine) -> None:
    owner, _caller, token_id = onboard_participant(engine, "Alice")
    cust = _customer(engine, owner, token_id)

    engine.execute("CUSTOMER_MINT_REQUEST", user_caller(cust), address=cust, token_id=token_id, amount=15)
    engine.execute("CUSTOMER_MINT_REQUEST", user_caller(cust), address=cust, token_id=token_id, amount=25)

    pending = engine.execute(
        "CUSTOMER_MINT_REQUESTS_PENDING", user_caller("x"), token_id=token_id, owner_address=owner
    )["requests"]
    assert len(pending) == 1
    assert pending[0]["amount"] == 25
    assert pending[0]["request_id"] == keys.customer_mint_request_key(cust, token_id)


def test_customer_mint_insufficient_pool_changes_nothing(engine) -> None:
    owner, caller, token_id = onboard_participant(engine, "Alice")
    fund_mint_pool(engine, owner, caller, 10)
    cust = _customer(engine, owner, token_id)

    rid = engine.execute("CUSTOMER_MINT_REQUEST", user_caller(cust), address=cust, token_id=token_id, amount=11)[
        "request_id"
    ]
    with pytest.raises(InsufficientFunds):
        engine.execute("CUSTOMER_MINT_APPROVE", user_caller("x"), request_id=rid, owner_address=owner)

    assert _minted(engine, token_id) == 10
    assert engine.store.get(keys.customer_key(cust, token_id))["balance"] == 0
    assert engine.store.get(rid)["approved"] is False


def test_customer_mint_request_needs_customer_record(engine) -> None:
    _owner, _caller, token_id = onboard_participant(engine, "Alice")
    with pytest.raises(NotFound):
        engine.execute("CUSTOMER_MINT_REQUEST", user_caller("c"), address="ghost", token_id=token_id, amount=1)


def test_customer_wallet_password_only(engine) -> None:
    owner, _caller, token_id = onboard_participant(engine, "Alice")
    cust = _customer(engine, owner, token_id)
    with pytest.raises(Unauthorized):
        engine.execute("CUSTOMER_WALLET", user_caller(cust), address=cust, token_id=token_id, password_hash=pw("nope"))
    # Any caller credential works once the password matches.
    out = engine.execute(
        "CUSTOMER_WALLET", user_caller("someone-else"), address=cust, token_id=token_id, password_hash=pw("cpw")
    )
    assert out["address"] == cust
