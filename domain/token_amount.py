"""
Domain: Token amount and bonus calculation.

Contract excerpts implemented here:
- base_tokens = raw_units * unit_price (exact integer multiplication)
- PRESALE:       bonus = floor(base_tokens * presale_bonus_percent / 100)
- BONUS_SALE:    bonus = floor(base_tokens * sale_bonus_percent / 100)
- NO_BONUS_SALE: bonus = 0
- token_amount = base_tokens + bonus

Truncation is intentional and must be reproduced exactly (no rounding).
Amounts must fit the token ledger's 256-bit unsigned range; larger results
are rejected instead of wrapped.
"""

from __future__ import annotations

from dataclasses import dataclass

from .errors import ContributionError, ContributionErrorKind
from .stage import SaleStage

MAX_TOKEN_AMOUNT: int = 2**256 - 1

PERCENT_DIVISOR: int = 100


@dataclass(frozen=True, slots=True)
class TokenBreakdown:
    """Base and bonus components of a token allocation."""

    base_tokens: int
    bonus_tokens: int

    @property
    def total(self) -> int:
        return self.base_tokens + self.bonus_tokens


def bonus_percent_for(stage: SaleStage, presale_bonus_percent: int, sale_bonus_percent: int) -> int:
    if stage is SaleStage.PRESALE:
        return presale_bonus_percent
    if stage is SaleStage.BONUS_SALE:
        return sale_bonus_percent
    if stage is SaleStage.NO_BONUS_SALE:
        return 0
    raise ValueError(f"No token amount is defined for stage {stage.value}")


def require_integer_units(name: str, value: object) -> None:
    """Reject bools, floats and other non-int amounts; token math is exact integer math."""

    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an integer, got {type(value).__name__}")


def _require_representable(name: str, value: int) -> None:
    if value > MAX_TOKEN_AMOUNT:
        raise ContributionError(
            ContributionErrorKind.AMOUNT_OVERFLOW,
            f"{name} exceeds the maximum representable token amount",
        )


def token_breakdown(
    raw_units: int,
    unit_price: int,
    stage: SaleStage,
    presale_bonus_percent: int,
    sale_bonus_percent: int,
) -> TokenBreakdown:
    """
    Split the allocation for `raw_units` into base and bonus tokens.

    Raises:
        TypeError: raw_units is not an integer
        ValueError: raw_units is negative or the stage is not purchasable
        ContributionError: AMOUNT_OVERFLOW if any intermediate exceeds 2**256 - 1
    """

    require_integer_units("raw_units", raw_units)
    if raw_units < 0:
        raise ValueError("raw_units must be >= 0")

    percent = bonus_percent_for(stage, presale_bonus_percent, sale_bonus_percent)

    base_tokens = raw_units * unit_price
    _require_representable("base token amount", base_tokens)

    scaled = base_tokens * percent
    _require_representable("bonus numerator", scaled)
    bonus_tokens = scaled // PERCENT_DIVISOR

    breakdown = TokenBreakdown(base_tokens=base_tokens, bonus_tokens=bonus_tokens)
    _require_representable("token amount", breakdown.total)
    return breakdown


def compute_token_amount(
    raw_units: int,
    unit_price: int,
    stage: SaleStage,
    presale_bonus_percent: int,
    sale_bonus_percent: int,
) -> int:
    """Tokens granted for `raw_units` contributed during `stage`, bonus included."""

    return token_breakdown(raw_units, unit_price, stage, presale_bonus_percent, sale_bonus_percent).total
