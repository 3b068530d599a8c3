"""
Purchases API Endpoints.

Endpoints for buying tokens and reading purchase history.
"""

from fastapi import APIRouter, Depends, HTTPException, Query

from api.dependencies import get_sale
from api.models import (
    ContributionRequest,
    PurchaseListResponse,
    PurchaseRequest,
    PurchaseResponse,
)
from domain.errors import TokenSaleError
from domain.purchase import PurchaseRecord
from services.purchase_service import TokenSale

router = APIRouter()


def _to_response(record: PurchaseRecord) -> PurchaseResponse:
    return PurchaseResponse(
        purchase_id=record.purchase_id,
        buyer=record.buyer,
        value=record.value,
        token_amount=record.token_amount,
        stage=record.stage.value,
        purchased_at=record.purchased_at,
    )


@router.post(
    "/purchases",
    response_model=PurchaseResponse,
    summary="Buy Tokens",
    description="Buy tokens for an explicit contribution. All-or-nothing."
)
def buy_tokens(request: PurchaseRequest, sale: TokenSale = Depends(get_sale)):
    """
    Execute a token purchase.

    **Process:**
    1. Rejects a zero contribution
    2. Resolves the stage (presale, bonus sale, no-bonus sale)
    3. Checks the participant's eligibility level with the registry
    4. In presale, enforces the minimum contribution
    5. Computes tokens (unit price plus stage bonus) and checks the caps
    6. Transfers tokens, forwards the contribution, records the sale

    Any failed step rejects the whole purchase with no effect.

    **Example request:**
    ```json
    {
      "participant": "0x4000000000000000000000000000000000000004",
      "raw_units": 5100000000000000000
    }
    ```

    **Failure response (presale cap reached):**
    ```json
    {
      "error": "CapExceeded",
      "detail": "Purchase of 122100000000000000000000 tokens would exceed the sale cap",
      "status_code": 409
    }
    ```
    """
    try:
        record = sale.buy_tokens(request.participant, request.raw_units)
        return _to_response(record)

    except TokenSaleError:
        raise
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to execute purchase: {str(e)}"
        )


@router.post(
    "/contributions",
    response_model=PurchaseResponse,
    summary="Contribute",
    description="Send value without instructions; the whole value buys tokens for the sender."
)
def contribute(request: ContributionRequest, sale: TokenSale = Depends(get_sale)):
    """
    Default contribution path.

    Identical validation to `POST /purchases`: no eligibility, minimum or cap
    check is bypassed.
    """
    try:
        record = sale.receive(request.sender, request.value)
        return _to_response(record)

    except TokenSaleError:
        raise
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to execute contribution: {str(e)}"
        )


@router.get(
    "/purchases",
    response_model=PurchaseListResponse,
    summary="List Purchases",
    description="Purchases made by a participant since the sale was loaded."
)
def list_purchases(
    participant: str = Query(..., min_length=1, description="Buyer address"),
    sale: TokenSale = Depends(get_sale),
):
    records = sale.purchases_by(participant)
    return PurchaseListResponse(
        items=[_to_response(record) for record in records],
        total_count=len(records),
    )
