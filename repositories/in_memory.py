"""
In-memory collaborators.

Process-local implementations of the token ledger, the eligibility registry and
the funds rail. They back the API's `memory` mode and the test suite, and
behave like their on-chain counterparts for everything the sale relies on:
- transfer_from only succeeds within the allowance the owner granted to the
  sale operator and within the holder's balance, and has no effect otherwise.
- A participant's level is the highest credential they hold.
"""

from __future__ import annotations

import threading
from collections import defaultdict
from typing import DefaultDict, Dict, List, Tuple

from domain.config import TOKEN_DECIMALS, normalize_address
from domain.eligibility import EligibilityLevel


class InMemoryTokenLedger:
    """
    Token balances and allowances for a single token.

    `operator` is the account the sale acts as when it calls transfer_from;
    the owner must approve it before any purchase can succeed.
    """

    def __init__(self, owner: str, operator: str, decimals: int = TOKEN_DECIMALS):
        self._owner = normalize_address(owner)
        self._operator = normalize_address(operator)
        self._decimals = decimals
        self._balances: DefaultDict[str, int] = defaultdict(int)
        self._allowances: Dict[Tuple[str, str], int] = {}
        self._lock = threading.Lock()

    def owner(self) -> str:
        return self._owner

    @property
    def operator(self) -> str:
        return self._operator

    def decimals(self) -> int:
        return self._decimals

    def mint(self, address: str, amount: int) -> None:
        if amount < 0:
            raise ValueError("amount must be >= 0")
        with self._lock:
            self._balances[normalize_address(address)] += amount

    def approve(self, owner: str, spender: str, amount: int) -> None:
        if amount < 0:
            raise ValueError("amount must be >= 0")
        with self._lock:
            self._allowances[(normalize_address(owner), normalize_address(spender))] = amount

    def allowance(self, owner: str, spender: str) -> int:
        return self._allowances.get((normalize_address(owner), normalize_address(spender)), 0)

    def balance_of(self, address: str) -> int:
        return self._balances.get(normalize_address(address), 0)

    def transfer_from(self, holder: str, recipient: str, amount: int) -> bool:
        holder_key = normalize_address(holder)
        recipient_key = normalize_address(recipient)
        allowance_key = (holder_key, self._operator)

        with self._lock:
            allowed = self._allowances.get(allowance_key, 0)
            if amount < 0 or amount > allowed or amount > self._balances.get(holder_key, 0):
                return False

            self._allowances[allowance_key] = allowed - amount
            self._balances[holder_key] -= amount
            self._balances[recipient_key] += amount
            return True


class InMemoryEligibilityOracle:
    """Credential registry keyed by address; each address may hold several credentials."""

    def __init__(self) -> None:
        self._credentials: DefaultDict[str, List[int]] = defaultdict(list)
        self.lookups = 0

    def issue(self, address: str, level: int) -> None:
        self._credentials[normalize_address(address)].append(int(level))

    def revoke_all(self, address: str) -> None:
        self._credentials.pop(normalize_address(address), None)

    def level_of(self, address: str) -> EligibilityLevel:
        self.lookups += 1
        return EligibilityLevel.highest(self._credentials.get(normalize_address(address), []))


class InMemoryFundsLedger:
    """Records value forwarded to each recipient."""

    def __init__(self) -> None:
        self._balances: DefaultDict[str, int] = defaultdict(int)
        self._lock = threading.Lock()

    def forward(self, recipient: str, amount: int) -> None:
        if amount <= 0:
            raise ValueError("amount must be > 0")
        with self._lock:
            self._balances[normalize_address(recipient)] += amount

    def balance_of(self, address: str) -> int:
        return self._balances.get(normalize_address(address), 0)


__all__ = [
    "InMemoryEligibilityOracle",
    "InMemoryFundsLedger",
    "InMemoryTokenLedger",
]
