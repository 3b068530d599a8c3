"""
Domain: Sale error taxonomy.

Every failure is a synchronous rejection of the attempted operation with no
partial state change. Each error carries a `kind` so callers (the API layer,
logs) can report the precise reason without parsing messages.

- ConfigurationError: raised only while constructing a sale.
- StageError: purchase attempted outside the active window.
- EligibilityError: oracle-reported level insufficient for the current stage.
- ContributionError: zero, below-minimum or unrepresentable contribution.
- CapError: purchase would breach the presale sub-cap or the global cap.
- TransferError: the token ledger refused the transfer.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class ConfigurationErrorKind(str, Enum):
    INVALID_ADDRESS = "InvalidAddress"
    ADDRESS_COLLISION = "AddressCollision"
    NON_MONOTONIC_SCHEDULE = "NonMonotonicSchedule"
    PAST_START_TIME = "PastStartTime"
    OUT_OF_RANGE_PERCENTAGE = "OutOfRangePercentage"
    ZERO_RATE = "ZeroRate"
    INVALID_CAP = "InvalidCap"
    PRECISION_MISMATCH = "PrecisionMismatch"
    ZERO_MINIMUM_DEPOSIT = "ZeroMinimumDeposit"


class StageErrorKind(str, Enum):
    SALE_NOT_STARTED = "SaleNotStarted"
    SALE_ENDED = "SaleEnded"


class EligibilityErrorKind(str, Enum):
    NOT_ELIGIBLE = "NotEligible"


class ContributionErrorKind(str, Enum):
    ZERO_CONTRIBUTION = "ZeroContribution"
    BELOW_MINIMUM_CONTRIBUTION = "BelowMinimumContribution"
    AMOUNT_OVERFLOW = "AmountOverflow"


class CapErrorKind(str, Enum):
    CAP_EXCEEDED = "CapExceeded"


class TransferErrorKind(str, Enum):
    TRANSFER_FAILED = "TransferFailed"


class TokenSaleError(Exception):
    """Base class for every rejection raised by the sale engine."""

    def __init__(self, kind: Enum, message: str):
        self.kind = kind
        self.message = message
        super().__init__(f"{kind.value}: {message}")


class ConfigurationError(TokenSaleError):
    """Raised when a SaleConfig violates a construction invariant."""

    def __init__(self, kind: ConfigurationErrorKind, message: str):
        super().__init__(kind, message)


class StageError(TokenSaleError):
    """Raised when a purchase is attempted before the presale or after the end."""

    def __init__(self, kind: StageErrorKind, message: str):
        super().__init__(kind, message)


class EligibilityError(TokenSaleError):
    """Raised when the participant's credential level does not admit the stage."""

    def __init__(self, message: str):
        super().__init__(EligibilityErrorKind.NOT_ELIGIBLE, message)


class ContributionError(TokenSaleError):
    """Raised when the contributed amount itself is unacceptable."""

    def __init__(self, kind: ContributionErrorKind, message: str):
        super().__init__(kind, message)


class CapError(TokenSaleError):
    """
    Raised when a purchase would exceed the presale sub-cap or the global cap.

    The signal is deliberately coarse (always CAP_EXCEEDED); `reason` names the
    cap that was hit for diagnostics only.
    """

    def __init__(self, message: str, reason: Optional[str] = None):
        self.reason = reason
        super().__init__(CapErrorKind.CAP_EXCEEDED, message)


class TransferError(TokenSaleError):
    """Raised when the token ledger denies the transfer. The ledger's message is kept verbatim."""

    def __init__(self, message: str):
        super().__init__(TransferErrorKind.TRANSFER_FAILED, message)


__all__ = [
    "CapError",
    "CapErrorKind",
    "ConfigurationError",
    "ConfigurationErrorKind",
    "ContributionError",
    "ContributionErrorKind",
    "EligibilityError",
    "EligibilityErrorKind",
    "StageError",
    "StageErrorKind",
    "TokenSaleError",
    "TransferError",
    "TransferErrorKind",
]
