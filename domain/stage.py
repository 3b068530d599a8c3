"""
Domain: Sale stages and stage resolution.

Contract excerpts implemented here:
- A sale moves through five stages in a fixed order:
  NOT_STARTED → PRESALE → BONUS_SALE → NO_BONUS_SALE → ENDED
- Stages are delimited by four strictly increasing timestamps:
  - NOT_STARTED:   now <  presale_start
  - PRESALE:       presale_start        <= now < bonus_stage_start
  - BONUS_SALE:    bonus_stage_start    <= now < no_bonus_stage_start
  - NO_BONUS_SALE: no_bonus_stage_start <= now < sale_end
  - ENDED:         now >= sale_end
- A timestamp exactly equal to a boundary belongs to the stage that starts there.

Resolution is pure: no implicit 'now' is used, all timestamps are passed explicitly.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Protocol

from .time import require_utc_timestamp


class SaleStage(str, Enum):
    NOT_STARTED = "NOT_STARTED"
    PRESALE = "PRESALE"
    BONUS_SALE = "BONUS_SALE"
    NO_BONUS_SALE = "NO_BONUS_SALE"
    ENDED = "ENDED"

    @property
    def is_active(self) -> bool:
        """True for the three stages in which purchases are possible."""

        return self in (SaleStage.PRESALE, SaleStage.BONUS_SALE, SaleStage.NO_BONUS_SALE)


class HasSchedule(Protocol):
    presale_start: datetime
    bonus_stage_start: datetime
    no_bonus_stage_start: datetime
    sale_end: datetime


def is_in_time_range(now: datetime, lower: datetime, upper: datetime) -> bool:
    """True iff lower <= now < upper."""

    return lower <= now < upper


def resolve_stage(now: datetime, schedule: HasSchedule) -> SaleStage:
    """
    Resolve the SaleStage for `now` against a schedule (a SaleSchedule or SaleConfig).

    Every timestamp maps to exactly one stage; the four active/ended intervals
    partition [presale_start, ∞) with no gap or overlap.
    """

    require_utc_timestamp("now", now)

    if now < schedule.presale_start:
        return SaleStage.NOT_STARTED
    if is_in_time_range(now, schedule.presale_start, schedule.bonus_stage_start):
        return SaleStage.PRESALE
    if is_in_time_range(now, schedule.bonus_stage_start, schedule.no_bonus_stage_start):
        return SaleStage.BONUS_SALE
    if is_in_time_range(now, schedule.no_bonus_stage_start, schedule.sale_end):
        return SaleStage.NO_BONUS_SALE
    return SaleStage.ENDED


@dataclass(frozen=True, slots=True)
class SaleSchedule:
    """
    Value object for the four stage boundaries.

    Ordering is not enforced here; SaleConfig validation rejects non-increasing
    schedules before a sale can be constructed.
    """

    presale_start: datetime
    bonus_stage_start: datetime
    no_bonus_stage_start: datetime
    sale_end: datetime

    def __post_init__(self) -> None:
        require_utc_timestamp("presale_start", self.presale_start)
        require_utc_timestamp("bonus_stage_start", self.bonus_stage_start)
        require_utc_timestamp("no_bonus_stage_start", self.no_bonus_stage_start)
        require_utc_timestamp("sale_end", self.sale_end)

    def is_strictly_increasing(self) -> bool:
        return self.presale_start < self.bonus_stage_start < self.no_bonus_stage_start < self.sale_end

    def stage_at(self, now: datetime) -> SaleStage:
        return resolve_stage(now, self)
