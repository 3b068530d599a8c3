"""
Domain: Supply caps and end-of-sale predicate.

Contract excerpts implemented here:
- Reject if tokens_sold_before + candidate_tokens > total_token_supply, in any stage.
- In PRESALE, also reject if tokens_sold_before + candidate_tokens > presale_token_cap.
- Landing exactly on a cap is accepted (<=, not <).
- has_ended is true once now >= sale_end OR tokens_sold >= total_token_supply,
  whichever happens first.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from .config import SaleConfig
from .stage import SaleStage
from .time import require_utc_timestamp


class CapRejection(str, Enum):
    GLOBAL_CAP = "GLOBAL_CAP"
    PRESALE_CAP = "PRESALE_CAP"


@dataclass(frozen=True, slots=True)
class CapCheck:
    """Outcome of a cap check: accepted, or rejected with the cap that was hit."""

    accepted: bool
    reason: Optional[CapRejection] = None
    tokens_sold_after: int = 0


def check_cap(
    stage: SaleStage,
    tokens_sold_before: int,
    candidate_tokens: int,
    presale_token_cap: int,
    total_token_supply: int,
) -> CapCheck:
    """Validate a prospective purchase against the post-purchase sold total."""

    tokens_sold_after = tokens_sold_before + candidate_tokens

    if tokens_sold_after > total_token_supply:
        return CapCheck(accepted=False, reason=CapRejection.GLOBAL_CAP, tokens_sold_after=tokens_sold_after)
    if stage is SaleStage.PRESALE and tokens_sold_after > presale_token_cap:
        return CapCheck(accepted=False, reason=CapRejection.PRESALE_CAP, tokens_sold_after=tokens_sold_after)
    return CapCheck(accepted=True, tokens_sold_after=tokens_sold_after)


def has_ended(now: datetime, tokens_sold: int, config: SaleConfig) -> bool:
    require_utc_timestamp("now", now)
    return now >= config.sale_end or tokens_sold >= config.total_token_supply
