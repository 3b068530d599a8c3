"""
Purchase service: the staged token sale.

Handles:
- Construction-time validation of the sale configuration
- Stage resolution, eligibility gating, minimum contribution and cap checks
- All-or-nothing purchases: token transfer, fund forwarding and sold-token
  accounting commit together or not at all
- Serialization of purchases behind a single lock (total order)

Every check runs before the one irrevocable step (the ledger transfer); local
state is committed only after that transfer succeeds.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Callable, List, Optional, Tuple
from uuid import uuid4

from domain.caps import check_cap, has_ended
from domain.collaborators import EligibilityOracle, FundsForwarder, TokenLedger
from domain.config import SaleConfig, normalize_address, validate_sale_config
from domain.eligibility import EligibilityLevel, check_eligibility
from domain.errors import (
    CapError,
    ContributionError,
    ContributionErrorKind,
    EligibilityError,
    StageError,
    StageErrorKind,
    TokenSaleError,
    TransferError,
)
from domain.purchase import PurchaseRecord
from domain.stage import SaleStage, resolve_stage
from domain.state import SaleState
from domain.time import require_utc_timestamp, utc_now
from domain.token_amount import compute_token_amount, require_integer_units

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]
PurchaseListener = Callable[[PurchaseRecord], None]


class TokenSale:
    """
    A staged token sale bound to its collaborators.

    Args:
        config: Immutable sale configuration
        token_ledger: Ledger of the sold token; the sale transfers from its owner
        eligibility_oracle: Credential registry consulted on every purchase
        funds: Rail that forwards contributed value to config.recipient_account
        clock: Source of the current UTC time (default: wall clock)
        tokens_sold: Sold total restored from persistence (default: 0)
        created_at: Original construction time when restoring a persisted sale
            (default: now); the presale must start after it
        recorder: Durable store called under the lock with every purchase whose
            tokens were transferred; its errors propagate (default: none)

    Raises:
        ConfigurationError: first violated configuration invariant

    Example:
        sale = TokenSale(config, ledger, oracle, funds)
        record = sale.buy_tokens("0xbuyer", 5 * 10**18)
        print(f"{record.buyer} received {record.token_amount} tokens")
    """

    def __init__(
        self,
        config: SaleConfig,
        token_ledger: TokenLedger,
        eligibility_oracle: EligibilityOracle,
        funds: FundsForwarder,
        clock: Clock = utc_now,
        tokens_sold: int = 0,
        created_at: Optional[datetime] = None,
        recorder: Optional[PurchaseListener] = None,
    ):
        constructed_at = created_at if created_at is not None else clock()
        error = validate_sale_config(config, now=constructed_at, token_decimals=token_ledger.decimals())
        if error is not None:
            raise error

        if tokens_sold > config.total_token_supply:
            raise ValueError("tokens_sold must not exceed total_token_supply")

        self._config = config
        self._ledger = token_ledger
        self._oracle = eligibility_oracle
        self._funds = funds
        self._clock = clock
        self._state = SaleState(tokens_sold=tokens_sold)
        self._purchases: List[PurchaseRecord] = []
        self._recorder = recorder
        self._listeners: List[PurchaseListener] = []
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    @property
    def config(self) -> SaleConfig:
        return self._config

    @property
    def tokens_sold(self) -> int:
        return self._state.tokens_sold

    @property
    def purchases(self) -> Tuple[PurchaseRecord, ...]:
        return tuple(self._purchases)

    def purchases_by(self, participant: str) -> List[PurchaseRecord]:
        key = normalize_address(participant)
        return [record for record in self._purchases if normalize_address(record.participant) == key]

    def now(self) -> datetime:
        now = self._clock()
        require_utc_timestamp("now", now)
        return now

    def stage(self, now: Optional[datetime] = None) -> SaleStage:
        return resolve_stage(now if now is not None else self.now(), self._config)

    def has_ended(self, now: Optional[datetime] = None) -> bool:
        return has_ended(now if now is not None else self.now(), self._state.tokens_sold, self._config)

    def add_listener(self, listener: PurchaseListener) -> None:
        """Register a callable invoked with every PurchaseRecord after it is committed."""

        self._listeners.append(listener)

    # ------------------------------------------------------------------
    # Purchases
    # ------------------------------------------------------------------

    def buy_tokens(self, participant: str, raw_units: int, now: Optional[datetime] = None) -> PurchaseRecord:
        """Explicit purchase of tokens for `raw_units` of contributed value."""

        return self.purchase(participant, raw_units, now)

    def receive(self, sender: str, value: int, now: Optional[datetime] = None) -> PurchaseRecord:
        """Default contribution path: the entire sent value buys tokens for the sender."""

        return self.purchase(sender, value, now)

    def purchase(self, participant: str, raw_units: int, now: Optional[datetime] = None) -> PurchaseRecord:
        """
        Execute one purchase as a single atomic unit.

        Process:
        1. Reject a zero contribution
        2. Resolve the stage; reject outside PRESALE/BONUS_SALE/NO_BONUS_SALE
        3. Query the eligibility oracle; reject if the level does not admit the stage
        4. In PRESALE, reject contributions below the minimum
        5. Compute the token amount (bonus included)
        6. Check the presale and global caps against the post-purchase total
        7. Transfer the tokens from the ledger owner to the participant
        8. Forward the contributed value to the recipient account
        9. Commit the new sold-token total
        10. Persist through the recorder, then announce the purchase

        Returns:
            PurchaseRecord of the completed purchase

        Raises:
            ContributionError, StageError, EligibilityError, CapError, TransferError
            TypeError: raw_units is not an integer (bools included)
        """

        require_integer_units("raw_units", raw_units)

        with self._lock:
            if now is None:
                now = self.now()
            require_utc_timestamp("now", now)

            try:
                token_amount, stage = self._validate(participant, raw_units, now)
                self._transfer_tokens(participant, token_amount)
            except TokenSaleError as e:
                logger.warning(
                    f"Token purchase rejected: {e.kind.value}",
                    extra={
                        "participant": participant,
                        "raw_units": raw_units,
                        "error_kind": e.kind.value,
                        "error_message": e.message,
                    },
                )
                raise

            record = self._commit(participant, raw_units, token_amount, stage, now)

        self._announce(record)
        return record

    def _validate(self, participant: str, raw_units: int, now: datetime) -> Tuple[int, SaleStage]:
        if raw_units <= 0:
            raise ContributionError(
                ContributionErrorKind.ZERO_CONTRIBUTION,
                "A purchase requires a positive contribution",
            )

        stage = resolve_stage(now, self._config)
        if stage is SaleStage.NOT_STARTED:
            raise StageError(StageErrorKind.SALE_NOT_STARTED, "The sale has not started yet")
        if stage is SaleStage.ENDED:
            raise StageError(StageErrorKind.SALE_ENDED, "The sale has ended")

        level = EligibilityLevel(self._oracle.level_of(participant))
        if not check_eligibility(stage, level):
            raise EligibilityError(
                f"Eligibility level {level.name} does not admit purchases during {stage.value}"
            )

        if stage is SaleStage.PRESALE and raw_units < self._config.minimum_presale_contribution:
            raise ContributionError(
                ContributionErrorKind.BELOW_MINIMUM_CONTRIBUTION,
                f"Presale contributions must be at least {self._config.minimum_presale_contribution}",
            )

        token_amount = compute_token_amount(
            raw_units,
            self._config.unit_price,
            stage,
            self._config.presale_bonus_percent,
            self._config.sale_bonus_percent,
        )

        cap = check_cap(
            stage,
            self._state.tokens_sold,
            token_amount,
            self._config.presale_token_cap,
            self._config.total_token_supply,
        )
        if not cap.accepted:
            raise CapError(
                f"Purchase of {token_amount} tokens would exceed the sale cap",
                reason=cap.reason.value if cap.reason else None,
            )

        return token_amount, stage

    def _transfer_tokens(self, participant: str, token_amount: int) -> None:
        holder = self._ledger.owner()
        try:
            transferred = self._ledger.transfer_from(holder, participant, token_amount)
        except TokenSaleError:
            raise
        except Exception as e:
            raise TransferError(str(e)) from e

        if not transferred:
            raise TransferError(
                f"Token ledger denied transfer of {token_amount} tokens from {holder} to {participant}"
            )

    def _commit(
        self,
        participant: str,
        raw_units: int,
        token_amount: int,
        stage: SaleStage,
        now: datetime,
    ) -> PurchaseRecord:
        """Steps 8-10. Called under the lock, only after the token transfer succeeded."""

        record = PurchaseRecord(
            purchase_id=uuid4(),
            participant=participant,
            raw_units=raw_units,
            token_amount=token_amount,
            stage=stage,
            purchased_at=now,
        )

        try:
            self._funds.forward(self._config.recipient_account, raw_units)
        except Exception:
            # Tokens already left the holder: they must still count against the caps.
            self._state = self._state.record_sale(token_amount)
            logger.critical(
                "Funds forwarding failed after token transfer",
                extra={
                    "purchase_id": str(record.purchase_id),
                    "participant": participant,
                    "raw_units": raw_units,
                    "token_amount": token_amount,
                    "recipient_account": self._config.recipient_account,
                },
            )
            self._persist(record)
            raise

        self._state = self._state.record_sale(token_amount)
        self._persist(record)
        self._purchases.append(record)
        return record

    def _persist(self, record: PurchaseRecord) -> None:
        """Hand the transferred purchase to the recorder; its failure propagates to the caller."""

        if self._recorder is None:
            return
        try:
            self._recorder(record)
        except Exception:
            logger.critical(
                "Purchase persistence failed after token transfer",
                extra={
                    "purchase_id": str(record.purchase_id),
                    "participant": record.participant,
                    "token_amount": record.token_amount,
                    "tokens_sold": self._state.tokens_sold,
                },
            )
            raise

    def _announce(self, record: PurchaseRecord) -> None:
        logger.info(
            "Token purchase",
            extra={
                "purchase_id": str(record.purchase_id),
                "buyer": record.buyer,
                "value": record.value,
                "token_amount": record.token_amount,
                "stage": record.stage.value,
            },
        )
        for listener in list(self._listeners):
            try:
                listener(record)
            except Exception:
                # The purchase is committed; a failing listener cannot undo it.
                logger.exception(
                    "Purchase listener failed",
                    extra={"purchase_id": str(record.purchase_id)},
                )


__all__ = [
    "Clock",
    "PurchaseListener",
    "TokenSale",
]
