"""
Domain: Sale configuration and its construction-time validation.

Contract excerpts implemented here:
- The configuration is fixed once at construction and never mutated.
- recipient_account, token_contract and eligibility_contract are non-zero and
  mutually distinct.
- presale_start < bonus_stage_start < no_bonus_stage_start < sale_end, and
  presale_start is strictly in the future when the sale is constructed.
- unit_price > 0, 0 < presale_token_cap <= total_token_supply,
  bonus percentages in (0, 100], minimum_presale_contribution > 0.
- The sold token must use TOKEN_DECIMALS fractional digits.

Violations are rejected, never clamped. Validation is a single pass that
returns the first violated invariant (or None) so callers decide how to raise.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from .errors import ConfigurationError, ConfigurationErrorKind
from .stage import SaleSchedule
from .time import require_utc_timestamp

# Fractional-unit scale the sale assumes for the sold token (10**18 units per token).
TOKEN_DECIMALS: int = 18

MAX_BONUS_PERCENT: int = 100


def is_zero_address(address: Optional[str]) -> bool:
    """The empty string and any 0x-prefixed all-zero hex string are the zero address."""

    if address is None:
        return True
    text = str(address).strip().lower()
    if text.startswith("0x"):
        text = text[2:]
    return text == "" or set(text) == {"0"}


def normalize_address(address: str) -> str:
    return str(address).strip().lower()


@dataclass(frozen=True, slots=True)
class SaleConfig:
    """
    Immutable configuration of a staged token sale.

    Amounts are integers in the smallest unit: raw_units of contributed value,
    tokens in the sold token's fractional unit. unit_price converts one raw unit
    into tokens before any bonus.
    """

    recipient_account: str
    token_contract: str
    eligibility_contract: str
    presale_start: datetime
    bonus_stage_start: datetime
    no_bonus_stage_start: datetime
    sale_end: datetime
    unit_price: int
    presale_token_cap: int
    total_token_supply: int
    presale_bonus_percent: int
    sale_bonus_percent: int
    minimum_presale_contribution: int

    def __post_init__(self) -> None:
        require_utc_timestamp("presale_start", self.presale_start)
        require_utc_timestamp("bonus_stage_start", self.bonus_stage_start)
        require_utc_timestamp("no_bonus_stage_start", self.no_bonus_stage_start)
        require_utc_timestamp("sale_end", self.sale_end)

    @property
    def schedule(self) -> SaleSchedule:
        return SaleSchedule(
            presale_start=self.presale_start,
            bonus_stage_start=self.bonus_stage_start,
            no_bonus_stage_start=self.no_bonus_stage_start,
            sale_end=self.sale_end,
        )


def _is_positive_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def validate_sale_config(
    config: SaleConfig,
    *,
    now: datetime,
    token_decimals: int,
) -> Optional[ConfigurationError]:
    """
    Validate every construction invariant in one pass.

    Args:
        config: Configuration to check
        now: Construction time (UTC); presale_start must be after it
        token_decimals: Decimals reported by the sold token's ledger

    Returns:
        The first violated invariant as a ConfigurationError, or None if valid

    Example:
        error = validate_sale_config(config, now=utc_now(), token_decimals=ledger.decimals())
        if error is not None:
            raise error
    """

    require_utc_timestamp("now", now)

    addresses = {
        "recipient_account": config.recipient_account,
        "token_contract": config.token_contract,
        "eligibility_contract": config.eligibility_contract,
    }
    for name, address in addresses.items():
        if is_zero_address(address):
            return ConfigurationError(
                ConfigurationErrorKind.INVALID_ADDRESS,
                f"{name} must be a non-zero address",
            )

    normalized = [normalize_address(address) for address in addresses.values()]
    if len(set(normalized)) != len(normalized):
        return ConfigurationError(
            ConfigurationErrorKind.ADDRESS_COLLISION,
            "recipient_account, token_contract and eligibility_contract must be distinct",
        )

    if config.presale_start <= now:
        return ConfigurationError(
            ConfigurationErrorKind.PAST_START_TIME,
            f"presale_start ({config.presale_start.isoformat()}) must be in the future",
        )

    if not config.schedule.is_strictly_increasing():
        return ConfigurationError(
            ConfigurationErrorKind.NON_MONOTONIC_SCHEDULE,
            "presale_start < bonus_stage_start < no_bonus_stage_start < sale_end is required",
        )

    for name in ("presale_bonus_percent", "sale_bonus_percent"):
        percent = getattr(config, name)
        if not _is_positive_int(percent) or percent > MAX_BONUS_PERCENT:
            return ConfigurationError(
                ConfigurationErrorKind.OUT_OF_RANGE_PERCENTAGE,
                f"{name} must be in (0, {MAX_BONUS_PERCENT}], got {percent!r}",
            )

    if not _is_positive_int(config.unit_price):
        return ConfigurationError(
            ConfigurationErrorKind.ZERO_RATE,
            f"unit_price must be a positive integer, got {config.unit_price!r}",
        )

    if not _is_positive_int(config.total_token_supply):
        return ConfigurationError(
            ConfigurationErrorKind.INVALID_CAP,
            f"total_token_supply must be a positive integer, got {config.total_token_supply!r}",
        )
    if not _is_positive_int(config.presale_token_cap):
        return ConfigurationError(
            ConfigurationErrorKind.INVALID_CAP,
            f"presale_token_cap must be a positive integer, got {config.presale_token_cap!r}",
        )
    if config.presale_token_cap > config.total_token_supply:
        return ConfigurationError(
            ConfigurationErrorKind.INVALID_CAP,
            "presale_token_cap must not exceed total_token_supply",
        )

    if not _is_positive_int(config.minimum_presale_contribution):
        return ConfigurationError(
            ConfigurationErrorKind.ZERO_MINIMUM_DEPOSIT,
            "minimum_presale_contribution must be a positive integer, "
            f"got {config.minimum_presale_contribution!r}",
        )

    if token_decimals != TOKEN_DECIMALS:
        return ConfigurationError(
            ConfigurationErrorKind.PRECISION_MISMATCH,
            f"sold token must use {TOKEN_DECIMALS} decimals, ledger reports {token_decimals}",
        )

    return None


__all__ = [
    "MAX_BONUS_PERCENT",
    "SaleConfig",
    "TOKEN_DECIMALS",
    "is_zero_address",
    "normalize_address",
    "validate_sale_config",
]
