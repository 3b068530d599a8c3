"""
Domain: Interfaces of the external collaborators a sale consumes.

The sale never depends on a concrete ledger, registry or payment rail; it is
given objects satisfying these protocols. In-memory and Supabase-backed
implementations live in the repositories package.
"""

from __future__ import annotations

from typing import Protocol

from .eligibility import EligibilityLevel


class TokenLedger(Protocol):
    """The fungible token being sold."""

    def owner(self) -> str:
        """Account holding the sale supply (the `holder` of transfer_from)."""

    def decimals(self) -> int:
        ...

    def balance_of(self, address: str) -> int:
        ...

    def transfer_from(self, holder: str, recipient: str, amount: int) -> bool:
        """
        Move `amount` from `holder` to `recipient` on the sale's authorization.

        Returns False (or raises) when the ledger denies the transfer, e.g. the
        allowance granted to the sale is exhausted. A denied transfer has no effect.
        """


class EligibilityOracle(Protocol):
    """Read-only credential registry."""

    def level_of(self, address: str) -> EligibilityLevel:
        ...


class FundsForwarder(Protocol):
    """Payment rail that delivers contributed value to the sale's recipient."""

    def forward(self, recipient: str, amount: int) -> None:
        ...
