"""
Purchase repository (persistence).

This module provides *only* persistence operations for the PurchaseRecord
domain event. It does not enforce business rules (stages, caps, eligibility);
it only inserts and fetches purchase records and reads back the sold total a
restarted sale resumes from. Every purchase row carries the token contract of
its sale.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, List, Mapping, Optional
from uuid import UUID

from supabase import Client  # type: ignore[import-not-found]

from domain.config import normalize_address
from domain.purchase import PurchaseRecord
from domain.stage import SaleStage
from domain.time import require_utc_timestamp
from repositories.client import get_supabase

# Supabase table name for purchase records.
# Keep this aligned with your database schema.
_PURCHASES_TABLE: str = "token_purchases"
_TOKENS_SOLD_RPC: str = "token_sale_tokens_sold"


def _to_iso_utc(dt: datetime, *, name: str) -> str:
    """Serialize a UTC datetime to ISO-8601 (timezone-aware, offset 0)."""

    require_utc_timestamp(name, dt)
    return dt.astimezone(timezone.utc).isoformat()


def _parse_utc_datetime(value: Any) -> datetime:
    """
    Parse a Supabase timestamp into a timezone-aware UTC datetime.

    Supabase commonly returns ISO-8601 strings, sometimes with a trailing 'Z'.
    """

    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str):
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    else:
        raise TypeError(f"Unsupported timestamp type: {type(value)!r}")

    if dt.tzinfo is None or dt.utcoffset() is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _row_to_purchase(row: Mapping[str, Any]) -> PurchaseRecord:
    """Convert a Supabase row into a PurchaseRecord."""

    return PurchaseRecord(
        purchase_id=UUID(str(row["purchase_id"])),
        participant=str(row["participant"]),
        raw_units=int(str(row["raw_units"])),
        token_amount=int(str(row["token_amount"])),
        stage=SaleStage(str(row["stage"])),
        purchased_at=_parse_utc_datetime(row["purchased_at_utc"]),
    )


def record_purchase(record: PurchaseRecord, token_contract: str, client: Optional[Client] = None) -> PurchaseRecord:
    """
    Insert a completed purchase into Supabase.

    Amounts are stored as text; they routinely exceed 64-bit integers.
    Participants are stored normalized (trimmed, lowercase).

    Args:
        record: PurchaseRecord emitted by the sale
        token_contract: Token of the sale the purchase belongs to
        client: Supabase client (default: shared client)

    Returns:
        The same PurchaseRecord, for chaining
    """

    client = client if client is not None else get_supabase()

    payload: dict[str, Any] = {
        "purchase_id": str(record.purchase_id),
        "token_contract": token_contract,
        "participant": normalize_address(record.participant),
        "raw_units": str(record.raw_units),
        "token_amount": str(record.token_amount),
        "stage": record.stage.value,
        "purchased_at_utc": _to_iso_utc(record.purchased_at, name="purchased_at"),
        "created_at_utc": datetime.now(timezone.utc).isoformat(),
    }

    response = client.table(_PURCHASES_TABLE).insert(payload).execute()
    error = getattr(response, "error", None)
    if error:
        raise RuntimeError(f"Failed to record purchase: {error}")

    return record


def list_purchases_by_participant(participant: str, client: Optional[Client] = None) -> List[PurchaseRecord]:
    """
    Retrieve all purchase records for a participant, oldest first.

    Returns:
        List[PurchaseRecord] (possibly empty)
    """

    client = client if client is not None else get_supabase()

    response = (
        client.table(_PURCHASES_TABLE)
        .select("*")
        .eq("participant", normalize_address(participant))
        .order("purchased_at_utc")
        .execute()
    )
    error = getattr(response, "error", None)
    if error:
        raise RuntimeError(f"Failed to list purchases: {error}")

    rows = getattr(response, "data", None) or []
    return [_row_to_purchase(row) for row in rows]


def get_purchase_by_id(purchase_id: UUID, client: Optional[Client] = None) -> Optional[PurchaseRecord]:
    """
    Retrieve a single purchase record by its ID.

    Returns:
        PurchaseRecord or None if not found
    """

    client = client if client is not None else get_supabase()

    response = (
        client.table(_PURCHASES_TABLE)
        .select("*")
        .eq("purchase_id", str(purchase_id))
        .limit(1)
        .execute()
    )
    error = getattr(response, "error", None)
    if error:
        raise RuntimeError(f"Failed to get purchase: {error}")

    rows = getattr(response, "data", None) or []

    if not rows:
        return None

    return _row_to_purchase(rows[0])


def get_tokens_sold(token_contract: str, client: Optional[Client] = None) -> int:
    """
    Sum of token_amount over every purchase recorded for `token_contract`.

    Used to restore a sale's sold-token counter after a restart. The sum runs in
    the `token_sale_tokens_sold()` PostgreSQL function, so it is neither capped by
    PostgREST's row limit nor mixed with other sales sharing the table.
    """

    client = client if client is not None else get_supabase()

    response = client.rpc(_TOKENS_SOLD_RPC, {"p_token_contract": token_contract}).execute()
    error = getattr(response, "error", None)
    if error:
        raise RuntimeError(f"Failed to read sold tokens: {error}")

    # NUMERIC comes back as text; no purchases yet comes back as null.
    total = getattr(response, "data", None)
    return int(str(total)) if total is not None else 0


__all__ = [
    "get_purchase_by_id",
    "get_tokens_sold",
    "list_purchases_by_participant",
    "record_purchase",
]
