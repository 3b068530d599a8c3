"""
Domain: Mutable sale accounting, modelled as immutable snapshots.

Contract excerpts implemented here:
- tokens_sold starts at 0 and is monotonically non-decreasing.
- tokens_sold changes exactly once per successful purchase, by the token amount
  of that purchase; it is never decremented.

The sale holds the current SaleState and replaces it on commit; a transition
returns a new instance and leaves prior snapshots unchanged, so a failed
purchase can never leave a half-applied counter behind.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class SaleState:
    tokens_sold: int = 0

    def __post_init__(self) -> None:
        if self.tokens_sold < 0:
            raise ValueError("tokens_sold must be >= 0")

    def record_sale(self, token_amount: int) -> "SaleState":
        """
        Return a new SaleState with `token_amount` more tokens sold.

        Enforces monotonicity: only strictly positive amounts are recorded.
        """

        if token_amount <= 0:
            raise ValueError("token_amount must be > 0")
        return SaleState(tokens_sold=self.tokens_sold + token_amount)
