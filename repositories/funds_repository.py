"""
Funds forwarding backed by Supabase.

Every forwarded contribution is appended to `fund_transfers`; settlement to
the recipient account happens downstream from that table.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional
from uuid import uuid4

from supabase import Client  # type: ignore[import-not-found]

from repositories.client import get_supabase

_FUND_TRANSFERS_TABLE: str = "fund_transfers"


class SupabaseFundsForwarder:
    def __init__(self, client: Optional[Client] = None):
        self._client = client if client is not None else get_supabase()

    def forward(self, recipient: str, amount: int) -> None:
        payload: dict[str, Any] = {
            "transfer_id": str(uuid4()),
            "recipient": recipient,
            "amount": str(amount),
            "created_at_utc": datetime.now(timezone.utc).isoformat(),
        }

        response = self._client.table(_FUND_TRANSFERS_TABLE).insert(payload).execute()
        error = getattr(response, "error", None)
        if error:
            raise RuntimeError(f"Failed to forward funds: {error}")


__all__ = ["SupabaseFundsForwarder"]
