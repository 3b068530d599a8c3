"""
Domain: Token purchase events.

A PurchaseRecord is emitted once per successful purchase, after the token
transfer, the fund forwarding and the sold-token update have all been applied.
It is the `{buyer, value, token_amount}` purchase event, with the stage and
time it was processed at.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from .stage import SaleStage
from .time import require_utc_timestamp


@dataclass(frozen=True, slots=True)
class PurchaseRecord:
    """
    Immutable record of a completed purchase.

    Captures:
    - Who bought (participant)
    - How much value was contributed (raw_units) and forwarded to the recipient
    - How many tokens were delivered (token_amount, bonus included)
    - When and in which stage it happened
    """

    purchase_id: UUID
    participant: str
    raw_units: int
    token_amount: int
    stage: SaleStage
    purchased_at: datetime

    def __post_init__(self) -> None:
        require_utc_timestamp("purchased_at", self.purchased_at)
        if self.raw_units <= 0:
            raise ValueError("raw_units must be > 0")
        if self.token_amount <= 0:
            raise ValueError("token_amount must be > 0")

    @property
    def buyer(self) -> str:
        return self.participant

    @property
    def value(self) -> int:
        return self.raw_units
