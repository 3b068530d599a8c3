"""
Tests for the HTTP API (`api/`).

Covers contract rules:
- GET /sale exposes every configuration field, tokens sold, stage and end state.
- POST /purchases and POST /contributions execute the same purchase and
  return the purchase event.
- Sale rejections map to HTTP status codes with the error kind in the body.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from conftest import BONUS_STAGE_START, BUYER, PRESALE_START, SALE_END, UNIT, WALLET, FakeClock
from api.main import create_app, status_code_for
from domain.errors import (
    CapError,
    ConfigurationError,
    ConfigurationErrorKind,
    ContributionError,
    ContributionErrorKind,
    EligibilityError,
    StageError,
    StageErrorKind,
    TransferError,
)
from repositories.in_memory import InMemoryFundsLedger
from services.purchase_service import TokenSale

STRANGER = "0x8000000000000000000000000000000000000008"


@pytest.fixture
def client(sale: TokenSale) -> TestClient:
    return TestClient(create_app(sale))


def test_health(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["service"] == "staged-token-sale-api"


def test_sale_status_before_start(client: TestClient) -> None:
    response = client.get("/api/v1/sale")

    assert response.status_code == 200
    body = response.json()
    assert body["stage"] == "NOT_STARTED"
    assert body["tokens_sold"] == 0
    assert body["has_ended"] is False
    assert body["recipient_account"] == WALLET
    assert body["unit_price"] == 10000
    assert body["presale_bonus_percent"] == 10
    assert body["sale_bonus_percent"] == 5
    assert body["minimum_presale_contribution"] == UNIT


def test_sale_status_after_end(client: TestClient, clock: FakeClock) -> None:
    clock.advance_to(SALE_END)

    body = client.get("/api/v1/sale").json()

    assert body["stage"] == "ENDED"
    assert body["has_ended"] is True


def test_purchase_returns_event(client: TestClient, clock: FakeClock, funds: InMemoryFundsLedger) -> None:
    clock.advance_to(PRESALE_START)

    response = client.post("/api/v1/purchases", json={"participant": BUYER, "raw_units": 51 * UNIT // 10})

    assert response.status_code == 200
    body = response.json()
    assert body["buyer"] == BUYER
    assert body["value"] == 51 * UNIT // 10
    assert body["token_amount"] == 56100 * UNIT
    assert body["stage"] == "PRESALE"
    assert body["purchase_id"]
    assert funds.balance_of(WALLET) == 51 * UNIT // 10

    status = client.get("/api/v1/sale").json()
    assert status["tokens_sold"] == 56100 * UNIT


def test_contribution_path_matches_purchase(client: TestClient, clock: FakeClock) -> None:
    clock.advance_to(BONUS_STAGE_START)

    response = client.post("/api/v1/contributions", json={"sender": BUYER, "value": UNIT})

    assert response.status_code == 200
    assert response.json()["token_amount"] == 10500 * UNIT
    assert response.json()["stage"] == "BONUS_SALE"


def test_purchase_history(client: TestClient, clock: FakeClock) -> None:
    clock.advance_to(BONUS_STAGE_START)
    client.post("/api/v1/purchases", json={"participant": BUYER, "raw_units": UNIT})
    client.post("/api/v1/contributions", json={"sender": BUYER, "value": 2 * UNIT})

    body = client.get("/api/v1/purchases", params={"participant": BUYER}).json()

    assert body["total_count"] == 2
    assert [item["value"] for item in body["items"]] == [UNIT, 2 * UNIT]

    empty = client.get("/api/v1/purchases", params={"participant": STRANGER}).json()
    assert empty == {"items": [], "total_count": 0}


def test_quote(client: TestClient, clock: FakeClock) -> None:
    clock.advance_to(PRESALE_START)

    response = client.post("/api/v1/quotes", json={"raw_units": 51 * UNIT // 10})

    assert response.status_code == 200
    body = response.json()
    assert body["base_tokens"] == 51000 * UNIT
    assert body["bonus_tokens"] == 5100 * UNIT
    assert body["purchasable"] is True
    assert body["reason"] is None


def test_quote_before_start(client: TestClient) -> None:
    body = client.post("/api/v1/quotes", json={"raw_units": UNIT}).json()

    assert body["purchasable"] is False
    assert body["reason"] == "SaleNotStarted"


def test_stage_rejection_is_409(client: TestClient) -> None:
    response = client.post("/api/v1/purchases", json={"participant": BUYER, "raw_units": UNIT})

    assert response.status_code == 409
    assert response.json()["error"] == "SaleNotStarted"
    assert response.json()["status_code"] == 409


def test_ineligible_participant_is_403(client: TestClient, clock: FakeClock) -> None:
    clock.advance_to(PRESALE_START)

    response = client.post("/api/v1/contributions", json={"sender": STRANGER, "value": UNIT})

    assert response.status_code == 403
    assert response.json()["error"] == "NotEligible"


def test_below_minimum_is_422(client: TestClient, clock: FakeClock) -> None:
    clock.advance_to(PRESALE_START)

    response = client.post("/api/v1/purchases", json={"participant": BUYER, "raw_units": UNIT - 1})

    assert response.status_code == 422
    assert response.json()["error"] == "BelowMinimumContribution"
    assert response.json()["detail"]


def test_zero_contribution_is_422(client: TestClient, clock: FakeClock) -> None:
    clock.advance_to(PRESALE_START)

    response = client.post("/api/v1/purchases", json={"participant": BUYER, "raw_units": 0})

    assert response.status_code == 422
    assert response.json()["error"] == "ZeroContribution"


def test_negative_amount_fails_request_validation(client: TestClient) -> None:
    response = client.post("/api/v1/purchases", json={"participant": BUYER, "raw_units": -1})

    assert response.status_code == 422


def test_cap_rejection_is_409(make_sale, clock: FakeClock) -> None:
    client = TestClient(create_app(make_sale(presale_token_cap=11000 * UNIT)))
    clock.advance_to(PRESALE_START)

    assert client.post("/api/v1/purchases", json={"participant": BUYER, "raw_units": UNIT}).status_code == 200
    response = client.post("/api/v1/purchases", json={"participant": BUYER, "raw_units": UNIT})

    assert response.status_code == 409
    assert response.json()["error"] == "CapExceeded"


def test_ledger_refusal_is_502(client: TestClient, clock: FakeClock, ledger) -> None:
    ledger.approve(ledger.owner(), ledger.operator, 0)
    clock.advance_to(PRESALE_START)

    response = client.post("/api/v1/purchases", json={"participant": BUYER, "raw_units": UNIT})

    assert response.status_code == 502
    assert response.json()["error"] == "TransferFailed"


@pytest.mark.parametrize(
    "error, status_code",
    [
        (StageError(StageErrorKind.SALE_ENDED, "ended"), 409),
        (CapError("cap"), 409),
        (EligibilityError("denied"), 403),
        (ContributionError(ContributionErrorKind.AMOUNT_OVERFLOW, "too large"), 422),
        (TransferError("refused"), 502),
        (ConfigurationError(ConfigurationErrorKind.ZERO_RATE, "rate"), 500),
    ],
)
def test_status_code_mapping(error, status_code: int) -> None:
    assert status_code_for(error) == status_code
