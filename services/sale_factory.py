"""
Sale assembly.

Wires a TokenSale to the collaborators selected by SaleSettings:
- memory: in-process ledger seeded with the full supply for the token owner,
  an allowance for the sale operator and the configured credentials
- supabase: database-backed ledger, registry and funds rail; the sold total is
  restored from the purchases recorded for the token contract, and every
  transferred purchase is persisted under the sale lock before it returns
"""

from __future__ import annotations

from domain.time import utc_now
from repositories.in_memory import InMemoryEligibilityOracle, InMemoryFundsLedger, InMemoryTokenLedger
from services.purchase_service import Clock, TokenSale
from services.settings import BACKEND_SUPABASE, SaleSettings


def build_memory_sale(settings: SaleSettings, clock: Clock = utc_now) -> TokenSale:
    config = settings.config
    owner = settings.token_owner or config.token_contract

    ledger = InMemoryTokenLedger(owner=owner, operator=settings.operator_account)
    ledger.mint(owner, config.total_token_supply)
    ledger.approve(owner, settings.operator_account, config.total_token_supply)

    oracle = InMemoryEligibilityOracle()
    for address, level in settings.credentials:
        oracle.issue(address, level)

    return TokenSale(
        config=config,
        token_ledger=ledger,
        eligibility_oracle=oracle,
        funds=InMemoryFundsLedger(),
        clock=clock,
        created_at=settings.created_at,
    )


def build_supabase_sale(settings: SaleSettings, clock: Clock = utc_now) -> TokenSale:
    from repositories.client import get_supabase
    from repositories.eligibility_repository import SupabaseEligibilityOracle
    from repositories.funds_repository import SupabaseFundsForwarder
    from repositories.sale_repository import get_tokens_sold, record_purchase
    from repositories.token_ledger_repository import SupabaseTokenLedger

    config = settings.config
    client = get_supabase()

    return TokenSale(
        config=config,
        token_ledger=SupabaseTokenLedger(config.token_contract, settings.operator_account, client=client),
        eligibility_oracle=SupabaseEligibilityOracle(config.eligibility_contract, client=client),
        funds=SupabaseFundsForwarder(client=client),
        clock=clock,
        tokens_sold=get_tokens_sold(config.token_contract, client=client),
        created_at=settings.created_at,
        recorder=lambda record: record_purchase(record, config.token_contract, client=client),
    )


def build_sale(settings: SaleSettings, clock: Clock = utc_now) -> TokenSale:
    if settings.backend == BACKEND_SUPABASE:
        return build_supabase_sale(settings, clock)
    return build_memory_sale(settings, clock)


__all__ = [
    "build_memory_sale",
    "build_sale",
    "build_supabase_sale",
]
