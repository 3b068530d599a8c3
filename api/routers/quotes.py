"""
Quotes API Endpoints.

Endpoints for quoting prospective contributions.
"""

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import get_sale
from api.models import QuoteRequest, QuoteResponse
from services.purchase_service import TokenSale
from services.quote_service import calculate_token_quote

router = APIRouter()


@router.post(
    "/quotes",
    response_model=QuoteResponse,
    summary="Calculate Token Quote",
    description="Calculate the tokens a contribution would buy in the current stage."
)
def calculate_quote(request: QuoteRequest, sale: TokenSale = Depends(get_sale)):
    """
    Calculate a token quote for a prospective contribution.

    **How it works:**
    1. Resolves the current sale stage
    2. Applies the unit price and the stage bonus (presale or bonus sale)
    3. Reports whether the stage, presale minimum and caps would admit it

    Eligibility is checked only when the purchase is executed.

    **Example request:**
    ```json
    {
      "raw_units": 5100000000000000000
    }
    ```
    """
    try:
        quote = calculate_token_quote(sale, request.raw_units)

        return QuoteResponse(
            raw_units=quote.raw_units,
            stage=quote.stage.value,
            base_tokens=quote.base_tokens,
            bonus_tokens=quote.bonus_tokens,
            token_amount=quote.token_amount,
            purchasable=quote.purchasable,
            reason=quote.reason,
            quoted_at=quote.quoted_at,
        )

    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to calculate quote: {str(e)}"
        )
