"""
Pytest configuration and shared fixtures.

Adds the project root to the Python path so tests can import the domain,
repositories, services and api packages, and provides a sale wired to
in-memory collaborators with a controllable clock.

Default configuration: 1 value unit = 10,000 tokens, 10% presale bonus,
5% bonus-sale bonus, 18-decimal token, 1-unit presale minimum, stages at
+1h / +5h / +8h / +12h from the fixed construction time.
"""

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable

import pytest

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from domain.config import SaleConfig  # noqa: E402
from domain.eligibility import EligibilityLevel  # noqa: E402
from repositories.in_memory import (  # noqa: E402
    InMemoryEligibilityOracle,
    InMemoryFundsLedger,
    InMemoryTokenLedger,
)
from services.purchase_service import TokenSale  # noqa: E402

UNIT = 10**18  # smallest units per whole value unit / whole token
RATE = 10000
TOTAL_TOKEN_SUPPLY = 250_000_001 * UNIT
PRESALE_TOKEN_CAP = 195_000_001 * UNIT
MINIMUM_PRESALE_CONTRIBUTION = 1 * UNIT
PRESALE_BONUS_PERCENT = 10
SALE_BONUS_PERCENT = 5

TOKEN = "0x1000000000000000000000000000000000000001"
REGISTRY = "0x2000000000000000000000000000000000000002"
WALLET = "0x3000000000000000000000000000000000000003"
BUYER = "0x4000000000000000000000000000000000000004"
TOKEN_OWNER = "0x5000000000000000000000000000000000000005"
SALE_OPERATOR = "0x6000000000000000000000000000000000000006"

CREATED_AT = datetime(2026, 1, 1, 0, 0, 0, tzinfo=timezone.utc)
PRESALE_START = CREATED_AT + timedelta(hours=1)
BONUS_STAGE_START = CREATED_AT + timedelta(hours=5)
NO_BONUS_STAGE_START = CREATED_AT + timedelta(hours=8)
SALE_END = CREATED_AT + timedelta(hours=12)


class FakeClock:
    """Controllable clock; starts at CREATED_AT."""

    def __init__(self, now: datetime = CREATED_AT):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance_to(self, moment: datetime) -> None:
        self.now = moment


def build_config(**overrides: Any) -> SaleConfig:
    values: dict[str, Any] = {
        "recipient_account": WALLET,
        "token_contract": TOKEN,
        "eligibility_contract": REGISTRY,
        "presale_start": PRESALE_START,
        "bonus_stage_start": BONUS_STAGE_START,
        "no_bonus_stage_start": NO_BONUS_STAGE_START,
        "sale_end": SALE_END,
        "unit_price": RATE,
        "presale_token_cap": PRESALE_TOKEN_CAP,
        "total_token_supply": TOTAL_TOKEN_SUPPLY,
        "presale_bonus_percent": PRESALE_BONUS_PERCENT,
        "sale_bonus_percent": SALE_BONUS_PERCENT,
        "minimum_presale_contribution": MINIMUM_PRESALE_CONTRIBUTION,
    }
    values.update(overrides)
    return SaleConfig(**values)


def build_ledger(allowance: int = TOTAL_TOKEN_SUPPLY, decimals: int = 18) -> InMemoryTokenLedger:
    ledger = InMemoryTokenLedger(owner=TOKEN_OWNER, operator=SALE_OPERATOR, decimals=decimals)
    ledger.mint(TOKEN_OWNER, TOTAL_TOKEN_SUPPLY)
    ledger.approve(TOKEN_OWNER, SALE_OPERATOR, allowance)
    return ledger


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def config() -> SaleConfig:
    return build_config()


@pytest.fixture
def ledger() -> InMemoryTokenLedger:
    return build_ledger()


@pytest.fixture
def oracle() -> InMemoryEligibilityOracle:
    oracle = InMemoryEligibilityOracle()
    oracle.issue(BUYER, EligibilityLevel.FULL)
    return oracle


@pytest.fixture
def funds() -> InMemoryFundsLedger:
    return InMemoryFundsLedger()


@pytest.fixture
def make_sale(
    clock: FakeClock,
    ledger: InMemoryTokenLedger,
    oracle: InMemoryEligibilityOracle,
    funds: InMemoryFundsLedger,
) -> Callable[..., TokenSale]:
    """Factory for a sale over the shared fixtures; keyword overrides replace config fields."""

    def _make(**overrides: Any) -> TokenSale:
        return TokenSale(
            config=build_config(**overrides),
            token_ledger=ledger,
            eligibility_oracle=oracle,
            funds=funds,
            clock=clock,
        )

    return _make


@pytest.fixture
def sale(make_sale: Callable[..., TokenSale]) -> TokenSale:
    return make_sale()
