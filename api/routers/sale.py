"""
Sale API Endpoints.

Read access to the sale configuration, sold-token total, stage and end state.
"""

from fastapi import APIRouter, Depends

from api.dependencies import get_sale
from api.models import SaleStatusResponse
from services.purchase_service import TokenSale

router = APIRouter()


@router.get(
    "/sale",
    response_model=SaleStatusResponse,
    summary="Sale Status",
    description="Sale configuration, tokens sold, current stage and whether the sale has ended."
)
def get_sale_status(sale: TokenSale = Depends(get_sale)):
    """
    Return the full sale configuration together with live accounting.

    `has_ended` becomes true as soon as the end time passes or the total
    token supply is sold, whichever happens first.
    """
    now = sale.now()
    config = sale.config

    return SaleStatusResponse(
        recipient_account=config.recipient_account,
        token_contract=config.token_contract,
        eligibility_contract=config.eligibility_contract,
        presale_start=config.presale_start,
        bonus_stage_start=config.bonus_stage_start,
        no_bonus_stage_start=config.no_bonus_stage_start,
        sale_end=config.sale_end,
        unit_price=config.unit_price,
        presale_token_cap=config.presale_token_cap,
        total_token_supply=config.total_token_supply,
        presale_bonus_percent=config.presale_bonus_percent,
        sale_bonus_percent=config.sale_bonus_percent,
        minimum_presale_contribution=config.minimum_presale_contribution,
        tokens_sold=sale.tokens_sold,
        has_ended=sale.has_ended(now),
        stage=sale.stage(now).value,
    )
