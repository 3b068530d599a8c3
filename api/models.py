"""
API Request and Response Models.

Pydantic models for validating API requests and serializing responses.
Amounts are integers in their smallest unit (contributed value units and
token fractional units).
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


# ============================================================================
# Sale Models
# ============================================================================

class SaleStatusResponse(BaseModel):
    """Sale configuration and live accounting."""
    recipient_account: str
    token_contract: str
    eligibility_contract: str
    presale_start: datetime
    bonus_stage_start: datetime
    no_bonus_stage_start: datetime
    sale_end: datetime
    unit_price: int
    presale_token_cap: int
    total_token_supply: int
    presale_bonus_percent: int
    sale_bonus_percent: int
    minimum_presale_contribution: int
    tokens_sold: int
    has_ended: bool
    stage: str  # "NOT_STARTED", "PRESALE", ...

    class Config:
        json_schema_extra = {
            "example": {
                "recipient_account": "0x3000000000000000000000000000000000000003",
                "token_contract": "0x1000000000000000000000000000000000000001",
                "eligibility_contract": "0x2000000000000000000000000000000000000002",
                "presale_start": "2026-11-01T12:00:00Z",
                "bonus_stage_start": "2026-11-01T16:00:00Z",
                "no_bonus_stage_start": "2026-11-01T19:00:00Z",
                "sale_end": "2026-11-01T23:00:00Z",
                "unit_price": 10000,
                "presale_token_cap": 195000001000000000000000000,
                "total_token_supply": 250000001000000000000000000,
                "presale_bonus_percent": 10,
                "sale_bonus_percent": 5,
                "minimum_presale_contribution": 1000000000000000000,
                "tokens_sold": 0,
                "has_ended": False,
                "stage": "PRESALE"
            }
        }


# ============================================================================
# Quote Models
# ============================================================================

class QuoteRequest(BaseModel):
    """Request to quote a prospective contribution."""
    raw_units: int = Field(
        ...,
        ge=0,
        description="Contributed value in its smallest unit"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "raw_units": 5100000000000000000
            }
        }


class QuoteResponse(BaseModel):
    """Token breakdown for a prospective contribution."""
    raw_units: int
    stage: str
    base_tokens: int
    bonus_tokens: int
    token_amount: int
    purchasable: bool
    reason: Optional[str] = None
    quoted_at: datetime


# ============================================================================
# Purchase Models
# ============================================================================

class PurchaseRequest(BaseModel):
    """Explicit purchase: contribute `raw_units` for `participant`."""
    participant: str = Field(
        ...,
        min_length=1,
        description="Address of the buyer"
    )
    raw_units: int = Field(
        ...,
        ge=0,
        description="Contributed value in its smallest unit"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "participant": "0x4000000000000000000000000000000000000004",
                "raw_units": 5100000000000000000
            }
        }


class ContributionRequest(BaseModel):
    """Default contribution: the whole sent value buys tokens for the sender."""
    sender: str = Field(
        ...,
        min_length=1,
        description="Address that sent the value"
    )
    value: int = Field(
        ...,
        ge=0,
        description="Sent value in its smallest unit"
    )


class PurchaseResponse(BaseModel):
    """Purchase event emitted after a successful purchase."""
    purchase_id: UUID
    buyer: str
    value: int
    token_amount: int
    stage: str
    purchased_at: datetime

    class Config:
        json_schema_extra = {
            "example": {
                "purchase_id": "123e4567-e89b-12d3-a456-426614174003",
                "buyer": "0x4000000000000000000000000000000000000004",
                "value": 5100000000000000000,
                "token_amount": 56100000000000000000000,
                "stage": "PRESALE",
                "purchased_at": "2026-11-01T12:00:30Z"
            }
        }


class PurchaseListResponse(BaseModel):
    """Purchase history for a participant."""
    items: List[PurchaseResponse]
    total_count: int


# ============================================================================
# Error Models
# ============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str
    detail: Optional[str] = None
    status_code: int

    class Config:
        json_schema_extra = {
            "example": {
                "error": "CapExceeded",
                "detail": "Purchase of 121000000000000000000000 tokens would exceed the sale cap",
                "status_code": 409
            }
        }
