import os
from unittest.mock import MagicMock

import pytest
from solders.pubkey import Pubkey

from tokencurve_core.common.config import ENV_PREFIX
from tokencurve_core.ledger.memory import InMemoryLedger
from tokencurve_core.settlement.orchestrator import SettlementOrchestrator
from tokencurve_core.webapi.webapi import create_app


@pytest.fixture
def app():
    app = create_app(SettlementOrchestrator(InMemoryLedger()))
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def authority():
    return str(Pubkey.new_unique())


@pytest.fixture
def mint(client, authority):
    token_mint = str(Pubkey.new_unique())
    response = client.post(
        "/curve/initialize",
        json={"token_mint": token_mint, "authority": authority, "base_price": 1_000_000, "slope": 100},
    )
    assert response.status_code == 201
    return token_mint


@pytest.fixture
def trader(client):
    trader = str(Pubkey.new_unique())
    response = client.post("/curve/airdrop", json={"account": trader, "amount": 10 ** 11})
    assert response.status_code == 200
    return trader


def test_initialize(client, authority):
    token_mint = str(Pubkey.new_unique())
    response = client.post(
        "/curve/initialize",
        json={
            "token_mint": token_mint,
            "authority": authority,
            "base_price": 1000,
            "slope": 1_000_000,
            "curve_type": "constant_product",
            "fee_bps": 30,
        },
    )
    assert response.status_code == 201
    body = response.get_json()
    assert body["shape"] == "CONSTANT_PRODUCT"
    assert body["authority"] == authority
    assert body["fee_bps"] == 30
    assert body["token_supply"] == 0
    assert Pubkey.from_string(body["curve"]) != Pubkey.from_string(body["escrow"])


def test_initialize_twice(client, mint, authority):
    response = client.post(
        "/curve/initialize",
        json={"token_mint": mint, "authority": authority, "base_price": 1, "slope": 1},
    )
    assert response.status_code == 409
    assert response.get_json()["error"] == "AlreadyInitialized"


def test_initialize_bad_parameters(client, authority):
    response = client.post(
        "/curve/initialize",
        json={"token_mint": str(Pubkey.new_unique()), "authority": authority, "base_price": 0, "slope": 1},
    )
    assert response.status_code == 400
    assert response.get_json()["error"] == "InvalidParameters"


def test_initialize_bad_address(client, authority):
    response = client.post(
        "/curve/initialize",
        json={"token_mint": "not-a-key", "authority": authority, "base_price": 1, "slope": 1},
    )
    assert response.status_code == 400
    assert response.get_json()["error"] == "InvalidAccount"


def test_request_validation(client):
    response = client.post("/curve/buy", json={"token_mint": str(Pubkey.new_unique())})
    assert response.status_code == 422


def test_buy_sell_and_status(client, mint, trader):
    response = client.post("/curve/buy", json={"token_mint": mint, "trader": trader, "amount_in": 10 ** 9})
    assert response.status_code == 200
    bought = response.get_json()
    assert bought["side"] == "BUY"
    assert bought["amount_in"] == 10 ** 9
    assert bought["amount_out"] > 0

    status = client.get("/curve/status", query_string={"token_mint": mint}).get_json()
    assert status["token_supply"] == bought["amount_out"]
    assert status["reserve_balance"] == 10 ** 9
    assert status["spot_price"] > 1_000_000

    quote = client.get(
        "/curve/quote", query_string={"token_mint": mint, "action": "sell", "amount": 10 ** 8}
    ).get_json()
    response = client.post("/curve/sell", json={"token_mint": mint, "trader": trader, "amount_in": 10 ** 8})
    assert response.status_code == 200
    sold = response.get_json()
    assert sold["side"] == "SELL"
    assert sold["amount_out"] == quote["reserve_out"]


def test_quote_exact_out(client, mint):
    response = client.get(
        "/curve/quote",
        query_string={"token_mint": mint, "action": "buy", "amount": 10 ** 9, "exact_out": "true"},
    )
    body = response.get_json()
    assert body["tokens_out"] == 10 ** 9
    buy_quote = client.get(
        "/curve/quote", query_string={"token_mint": mint, "action": "buy", "amount": body["reserve_in"]}
    ).get_json()
    assert buy_quote["tokens_out"] >= 10 ** 9


def test_slippage(client, mint, trader):
    response = client.post(
        "/curve/buy",
        json={"token_mint": mint, "trader": trader, "amount_in": 10 ** 9, "min_amount_out": 10 ** 15},
    )
    assert response.status_code == 400
    assert response.get_json()["error"] == "SlippageExceeded"


def test_pause_requires_authority(client, mint, authority, trader):
    response = client.post("/curve/pause", json={"token_mint": mint, "caller": trader, "paused": True})
    assert response.status_code == 403
    assert response.get_json()["error"] == "Unauthorized"

    response = client.post("/curve/pause", json={"token_mint": mint, "caller": authority, "paused": True})
    assert response.get_json()["paused"] is True
    response = client.post("/curve/buy", json={"token_mint": mint, "trader": trader, "amount_in": 10 ** 9})
    assert response.status_code == 400
    assert response.get_json()["error"] == "TradingPaused"


def test_set_fee(client, mint, authority):
    response = client.post("/curve/fee", json={"token_mint": mint, "caller": authority, "fee_bps": 50})
    assert response.status_code == 200
    assert response.get_json()["fee_bps"] == 50


def test_unknown_curve(client):
    response = client.get("/curve/status", query_string={"token_mint": str(Pubkey.new_unique())})
    assert response.status_code == 404
    assert response.get_json()["error"] == "CurveNotFound"


def test_default_app_trades_end_to_end(monkeypatch):
    """
    The app built with no arguments can fund a trader and complete a buy
    using HTTP calls alone.
    """
    for name in list(os.environ):
        if name.startswith(ENV_PREFIX):
            monkeypatch.delenv(name)
    client = create_app().test_client()
    token_mint, authority, trader = (str(Pubkey.new_unique()) for _ in range(3))

    response = client.post("/curve/airdrop", json={"account": trader, "amount": 5 * 10 ** 9})
    assert response.get_json() == {"account": trader, "balance": 5 * 10 ** 9}
    response = client.post(
        "/curve/initialize",
        json={"token_mint": token_mint, "authority": authority, "base_price": 1_000_000, "slope": 100},
    )
    assert response.status_code == 201

    response = client.post("/curve/buy", json={"token_mint": token_mint, "trader": trader, "amount_in": 10 ** 9})
    assert response.status_code == 200
    assert response.get_json()["amount_out"] > 0
    response = client.post("/curve/airdrop", json={"account": trader, "amount": 1})
    assert response.get_json()["balance"] == 4 * 10 ** 9 + 1


def test_airdrop_rejects_bad_input(client):
    response = client.post("/curve/airdrop", json={"account": "not-a-key", "amount": 10})
    assert response.status_code == 400
    assert response.get_json()["error"] == "InvalidAccount"
    response = client.post("/curve/airdrop", json={"account": str(Pubkey.new_unique()), "amount": 0})
    assert response.status_code == 422


def test_airdrop_needs_in_memory_ledger():
    orchestrator = MagicMock()
    orchestrator.ledger = object()
    client = create_app(orchestrator).test_client()
    response = client.post("/curve/airdrop", json={"account": str(Pubkey.new_unique()), "amount": 10})
    assert response.status_code == 404
