"""
Domain: Eligibility levels and stage gating.

Contract excerpts implemented here:
- The eligibility registry reports a discrete level per address: NONE, PARTIAL or FULL.
- PRESALE requires FULL.
- BONUS_SALE and NO_BONUS_SALE require at least PARTIAL.
- NOT_STARTED and ENDED always deny.

The registry itself is an external collaborator (see domain.collaborators);
this module only decides whether a reported level admits a stage.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Iterable, Optional

from .stage import SaleStage


class EligibilityLevel(IntEnum):
    NONE = 0
    PARTIAL = 1
    FULL = 2

    @staticmethod
    def highest(levels: Iterable[int]) -> "EligibilityLevel":
        """
        Effective level for a holder of several credentials: the highest one held.

        Unknown level values above FULL count as FULL; an empty set is NONE.
        """

        best = EligibilityLevel.NONE
        for value in levels:
            if value >= EligibilityLevel.FULL:
                return EligibilityLevel.FULL
            if value > best:
                best = EligibilityLevel(value)
        return best


_REQUIRED_LEVEL = {
    SaleStage.PRESALE: EligibilityLevel.FULL,
    SaleStage.BONUS_SALE: EligibilityLevel.PARTIAL,
    SaleStage.NO_BONUS_SALE: EligibilityLevel.PARTIAL,
}


def required_level(stage: SaleStage) -> Optional[EligibilityLevel]:
    """Minimum level admitted in `stage`, or None when no purchase is possible."""

    return _REQUIRED_LEVEL.get(stage)


def check_eligibility(stage: SaleStage, level: EligibilityLevel) -> bool:
    """Allowed (True) or Denied (False) for a participant at `level` during `stage`."""

    required = required_level(stage)
    if required is None:
        return False
    return level >= required
