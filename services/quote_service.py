"""
Quote service for prospective contributions.

Calculates what a contribution would buy right now (stage, base tokens, bonus
tokens) and whether the participant-independent checks would pass, without
touching the ledger, the oracle or the sale's accounting.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from domain.caps import check_cap
from domain.errors import ContributionError
from domain.stage import SaleStage
from domain.token_amount import require_integer_units, token_breakdown
from services.purchase_service import TokenSale


@dataclass(frozen=True, slots=True)
class TokenQuote:
    """
    Quote for a single contribution.

    purchasable is False when the stage is inactive, the presale minimum is not
    met, the amount is not representable, or a cap would be exceeded; `reason`
    then names the first failing check. Eligibility is not part of a quote.
    """

    raw_units: int
    stage: SaleStage
    base_tokens: int
    bonus_tokens: int
    token_amount: int
    purchasable: bool
    reason: Optional[str]
    quoted_at: datetime


def calculate_token_quote(sale: TokenSale, raw_units: int, now: Optional[datetime] = None) -> TokenQuote:
    """
    Calculate a token quote for `raw_units` contributed at `now`.

    Args:
        sale: Sale to quote against
        raw_units: Contributed value in its smallest unit
        now: Quote time (default: the sale's clock)

    Returns:
        TokenQuote with the token breakdown and purchasability

    Raises:
        TypeError: raw_units is not an integer

    Example:
        quote = calculate_token_quote(sale, 5 * 10**18)
        print(f"{quote.token_amount} tokens ({quote.bonus_tokens} bonus) in {quote.stage.value}")
    """
    require_integer_units("raw_units", raw_units)
    if now is None:
        now = sale.now()

    config = sale.config
    stage = sale.stage(now)

    def _quote(base: int, bonus: int, reason: Optional[str]) -> TokenQuote:
        return TokenQuote(
            raw_units=raw_units,
            stage=stage,
            base_tokens=base,
            bonus_tokens=bonus,
            token_amount=base + bonus,
            purchasable=reason is None,
            reason=reason,
            quoted_at=now,
        )

    if raw_units <= 0:
        return _quote(0, 0, "ZeroContribution")
    if not stage.is_active:
        return _quote(0, 0, "SaleNotStarted" if stage is SaleStage.NOT_STARTED else "SaleEnded")

    try:
        breakdown = token_breakdown(
            raw_units,
            config.unit_price,
            stage,
            config.presale_bonus_percent,
            config.sale_bonus_percent,
        )
    except ContributionError as e:
        return _quote(0, 0, e.kind.value)

    if stage is SaleStage.PRESALE and raw_units < config.minimum_presale_contribution:
        return _quote(breakdown.base_tokens, breakdown.bonus_tokens, "BelowMinimumContribution")

    cap = check_cap(
        stage,
        sale.tokens_sold,
        breakdown.total,
        config.presale_token_cap,
        config.total_token_supply,
    )
    if not cap.accepted:
        return _quote(breakdown.base_tokens, breakdown.bonus_tokens, "CapExceeded")

    return _quote(breakdown.base_tokens, breakdown.bonus_tokens, None)


__all__ = [
    "TokenQuote",
    "calculate_token_quote",
]
