"""
Tests for `domain/config.py` and sale construction.

Covers contract rules:
- Zero and duplicate addresses are rejected.
- The schedule must be strictly increasing and start in the future.
- Bonus percentages must be in (0, 100]; rate, caps and minimum must be positive;
  the presale cap must not exceed the total supply.
- The sold token must use 18 decimals.
- The first violated invariant is reported; nothing is clamped.
"""

from __future__ import annotations

from dataclasses import FrozenInstanceError
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from conftest import (
    CREATED_AT,
    NO_BONUS_STAGE_START,
    PRESALE_START,
    REGISTRY,
    SALE_END,
    TOKEN,
    TOTAL_TOKEN_SUPPLY,
    WALLET,
    FakeClock,
    build_config,
    build_ledger,
)
from domain.config import is_zero_address, validate_sale_config
from domain.errors import ConfigurationError, ConfigurationErrorKind
from repositories.in_memory import InMemoryEligibilityOracle, InMemoryFundsLedger
from services.purchase_service import TokenSale

ZERO = "0x0000000000000000000000000000000000000000"


def _construct(token_decimals: int = 18, **overrides: Any) -> TokenSale:
    return TokenSale(
        config=build_config(**overrides),
        token_ledger=build_ledger(decimals=token_decimals),
        eligibility_oracle=InMemoryEligibilityOracle(),
        funds=InMemoryFundsLedger(),
        clock=FakeClock(CREATED_AT),
    )


def test_valid_configuration_constructs_with_zero_tokens_sold() -> None:
    sale = _construct()

    assert sale.tokens_sold == 0
    assert sale.config.recipient_account == WALLET
    assert sale.config.token_contract == TOKEN
    assert sale.config.eligibility_contract == REGISTRY
    assert sale.config.unit_price == 10000
    assert sale.config.presale_bonus_percent == 10
    assert sale.config.sale_bonus_percent == 5
    assert sale.config.presale_start < sale.config.bonus_stage_start
    assert sale.config.bonus_stage_start < sale.config.no_bonus_stage_start < sale.config.sale_end


@pytest.mark.parametrize(
    "overrides, expected_kind",
    [
        ({"recipient_account": ZERO}, ConfigurationErrorKind.INVALID_ADDRESS),
        ({"recipient_account": ""}, ConfigurationErrorKind.INVALID_ADDRESS),
        ({"token_contract": ZERO}, ConfigurationErrorKind.INVALID_ADDRESS),
        ({"eligibility_contract": "0x0"}, ConfigurationErrorKind.INVALID_ADDRESS),
        ({"eligibility_contract": TOKEN}, ConfigurationErrorKind.ADDRESS_COLLISION),
        ({"eligibility_contract": WALLET}, ConfigurationErrorKind.ADDRESS_COLLISION),
        ({"recipient_account": TOKEN}, ConfigurationErrorKind.ADDRESS_COLLISION),
        ({"recipient_account": f"  {TOKEN}  "}, ConfigurationErrorKind.ADDRESS_COLLISION),
        ({"presale_start": CREATED_AT - timedelta(weeks=1)}, ConfigurationErrorKind.PAST_START_TIME),
        ({"presale_start": CREATED_AT}, ConfigurationErrorKind.PAST_START_TIME),
        ({"bonus_stage_start": PRESALE_START}, ConfigurationErrorKind.NON_MONOTONIC_SCHEDULE),
        ({"no_bonus_stage_start": SALE_END}, ConfigurationErrorKind.NON_MONOTONIC_SCHEDULE),
        ({"sale_end": NO_BONUS_STAGE_START - timedelta(minutes=1)}, ConfigurationErrorKind.NON_MONOTONIC_SCHEDULE),
        ({"presale_bonus_percent": 0}, ConfigurationErrorKind.OUT_OF_RANGE_PERCENTAGE),
        ({"presale_bonus_percent": 101}, ConfigurationErrorKind.OUT_OF_RANGE_PERCENTAGE),
        ({"sale_bonus_percent": 0}, ConfigurationErrorKind.OUT_OF_RANGE_PERCENTAGE),
        ({"sale_bonus_percent": 101}, ConfigurationErrorKind.OUT_OF_RANGE_PERCENTAGE),
        ({"unit_price": 0}, ConfigurationErrorKind.ZERO_RATE),
        ({"presale_token_cap": 0}, ConfigurationErrorKind.INVALID_CAP),
        ({"presale_token_cap": TOTAL_TOKEN_SUPPLY + 1}, ConfigurationErrorKind.INVALID_CAP),
        ({"total_token_supply": 0}, ConfigurationErrorKind.INVALID_CAP),
        ({"minimum_presale_contribution": 0}, ConfigurationErrorKind.ZERO_MINIMUM_DEPOSIT),
    ],
)
def test_invalid_configuration_is_rejected(overrides: dict[str, Any], expected_kind: ConfigurationErrorKind) -> None:
    """Verify each violated invariant raises ConfigurationError with the matching kind."""

    with pytest.raises(ConfigurationError) as excinfo:
        _construct(**overrides)

    assert excinfo.value.kind is expected_kind


def test_percentage_of_exactly_100_is_accepted() -> None:
    sale = _construct(presale_bonus_percent=100, sale_bonus_percent=100)
    assert sale.config.presale_bonus_percent == 100


def test_presale_cap_equal_to_total_supply_is_accepted() -> None:
    sale = _construct(presale_token_cap=TOTAL_TOKEN_SUPPLY)
    assert sale.config.presale_token_cap == sale.config.total_token_supply


def test_token_precision_mismatch_is_rejected() -> None:
    with pytest.raises(ConfigurationError) as excinfo:
        _construct(token_decimals=24)

    assert excinfo.value.kind is ConfigurationErrorKind.PRECISION_MISMATCH


def test_validate_sale_config_returns_first_violation_without_raising() -> None:
    """Verify validation is a single pass returning a typed result; address checks come first."""

    config = build_config(recipient_account=ZERO, unit_price=0)
    error = validate_sale_config(config, now=CREATED_AT, token_decimals=18)

    assert isinstance(error, ConfigurationError)
    assert error.kind is ConfigurationErrorKind.INVALID_ADDRESS

    assert validate_sale_config(build_config(), now=CREATED_AT, token_decimals=18) is None


def test_restored_sale_validates_against_original_construction_time() -> None:
    """Verify a persisted sale can be rebuilt mid-presale when its construction time is supplied."""

    sale = TokenSale(
        config=build_config(),
        token_ledger=build_ledger(),
        eligibility_oracle=InMemoryEligibilityOracle(),
        funds=InMemoryFundsLedger(),
        clock=FakeClock(PRESALE_START + timedelta(minutes=5)),
        tokens_sold=1000,
        created_at=CREATED_AT,
    )
    assert sale.tokens_sold == 1000


def test_restored_tokens_sold_above_supply_is_rejected() -> None:
    with pytest.raises(ValueError):
        TokenSale(
            config=build_config(),
            token_ledger=build_ledger(),
            eligibility_oracle=InMemoryEligibilityOracle(),
            funds=InMemoryFundsLedger(),
            clock=FakeClock(CREATED_AT),
            tokens_sold=TOTAL_TOKEN_SUPPLY + 1,
        )


def test_sale_config_is_immutable() -> None:
    config = build_config()

    with pytest.raises(FrozenInstanceError):
        config.unit_price = 1  # type: ignore[misc]


def test_sale_config_requires_utc_timestamps() -> None:
    with pytest.raises(ValueError):
        build_config(presale_start=datetime(2026, 1, 1, 1, 0, 0))
    with pytest.raises(ValueError):
        build_config(sale_end=datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone(timedelta(hours=-5))))


@pytest.mark.parametrize(
    "address, zero",
    [
        ("", True),
        ("0x", True),
        ("0x0", True),
        (ZERO, True),
        ("  0x000  ", True),
        (WALLET, False),
        ("0x00000000000000000000000000000000000000a0", False),
    ],
)
def test_is_zero_address(address: str, zero: bool) -> None:
    assert is_zero_address(address) is zero
