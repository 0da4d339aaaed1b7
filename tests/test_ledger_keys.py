from __future__ import annotations

import pytest

from mintledger.ledger import keys


def test_composite_parts_with_separator_round_trip() -> None:
    k = keys.customer_key("addr:with:colons", "token_3")
    assert k.count(":") == 2

    decoded = keys.decode(k)
    assert decoded.namespace == keys.NS_CUSTOMER
    assert decoded.parts == ("addr:with:colons", "token_3")


def test_namespaces_do_not_overlap_under_prefix_scan() -> None:
    tok = keys.token_key("token_1")
    req = keys.token_request_key("abc")
    assert tok.startswith(keys.prefix(keys.NS_TOKEN))
    assert not req.startswith(keys.prefix(keys.NS_TOKEN))

    cust = keys.customer_key("a", "token_1")
    creq = keys.customer_request_key("a", "token_1")
    assert not creq.startswith(keys.prefix(keys.NS_CUSTOMER))
    assert not cust.startswith(keys.prefix(keys.NS_CUSTOMER_REQUEST))


def test_decode_rejects_wrong_arity_and_unknown_namespace() -> None:
    with pytest.raises(keys.LedgerKeyError):
        keys.decode("customer:onlyone")
    with pytest.raises(keys.LedgerKeyError):
        keys.decode("bogus:x")
    with pytest.raises(keys.LedgerKeyError):
        keys.decode("no-separator")


def test_try_decode_checks_namespace() -> None:
    k = keys.mint_request_key("token_1", "addr")
    assert keys.try_decode(k, keys.NS_MINT_REQUEST) is not None
    assert keys.try_decode(k, keys.NS_CUSTOMER_MINT_REQUEST) is None
    assert keys.try_decode("garbage", keys.NS_MINT_REQUEST) is None


def test_token_ids_follow_index() -> None:
    assert keys.token_id_for_index(1) == "token_1"
    assert keys.token_id_for_index(25) == "token_25"
