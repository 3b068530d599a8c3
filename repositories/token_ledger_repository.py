"""
Token ledger backed by Supabase.

Balances live in `token_balances`, token metadata (owner, decimals) in
`token_metadata`. Transfers go through the `token_transfer_from()` PostgreSQL
function, which in a single transaction:
- Locks the holder's balance and the operator's allowance rows (FOR UPDATE)
- Checks allowance and balance
- Decrements allowance and holder balance, credits the recipient
and returns `{"success": bool, "error": str, "message": str}`. A denial is raised
as TransferError carrying that error and message. Addresses are matched in
their normalized (trimmed, lowercase) form.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from supabase import Client  # type: ignore[import-not-found]

from domain.config import normalize_address
from domain.errors import TransferError
from repositories.client import get_supabase

logger = logging.getLogger(__name__)

_BALANCES_TABLE: str = "token_balances"
_METADATA_TABLE: str = "token_metadata"
_TRANSFER_FROM_RPC: str = "token_transfer_from"


class SupabaseTokenLedger:
    """
    TokenLedger for the token identified by `token_contract`, acting as `operator`.

    Metadata is read once per instance; balances and transfers always hit the database.
    """

    def __init__(self, token_contract: str, operator: str, client: Optional[Client] = None):
        self._token = token_contract
        self._operator = operator
        self._client = client if client is not None else get_supabase()
        self._metadata: Optional[Mapping[str, Any]] = None

    def _load_metadata(self) -> Mapping[str, Any]:
        if self._metadata is not None:
            return self._metadata

        response = (
            self._client.table(_METADATA_TABLE)
            .select("*")
            .eq("token_contract", self._token)
            .limit(1)
            .execute()
        )
        error = getattr(response, "error", None)
        if error:
            raise RuntimeError(f"Failed to fetch token metadata: {error}")

        rows = getattr(response, "data", None) or []
        if not rows:
            raise RuntimeError(f"Unknown token contract: {self._token}")

        self._metadata = rows[0]
        return self._metadata

    def owner(self) -> str:
        return str(self._load_metadata()["owner"])

    def decimals(self) -> int:
        return int(self._load_metadata()["decimals"])

    def balance_of(self, address: str) -> int:
        response = (
            self._client.table(_BALANCES_TABLE)
            .select("balance")
            .eq("token_contract", self._token)
            .eq("holder", normalize_address(address))
            .limit(1)
            .execute()
        )
        error = getattr(response, "error", None)
        if error:
            raise RuntimeError(f"Failed to fetch token balance: {error}")

        rows = getattr(response, "data", None) or []
        if not rows:
            return 0
        return int(str(rows[0]["balance"]))

    def transfer_from(self, holder: str, recipient: str, amount: int) -> bool:
        """
        Execute the allowance-checked transfer via the PostgreSQL function.

        Returns:
            True if the transfer was applied

        Raises:
            TransferError: If the database denied the transfer; carries its error and message
            RuntimeError: If the RPC itself failed (connection, schema)
        """
        from postgrest.exceptions import APIError

        payload = {
            "p_token_contract": self._token,
            "p_operator": self._operator,
            "p_holder": normalize_address(holder),
            "p_recipient": normalize_address(recipient),
            # Amounts exceed 64-bit integers; send as text, the function casts to NUMERIC.
            "p_amount": str(amount),
        }

        try:
            response = self._client.rpc(_TRANSFER_FROM_RPC, payload).execute()
        except APIError as e:
            # supabase-py raises APIError for JSON bodies returned by the function,
            # for both success and denial.
            error_data = e.json() if callable(getattr(e, "json", None)) else {}
            if not isinstance(error_data, dict) or "success" not in error_data:
                raise RuntimeError(f"Token transfer RPC failed: {e}") from e
            return self._read_result(error_data, amount)

        error = getattr(response, "error", None)
        if error:
            raise RuntimeError(f"Token transfer RPC failed: {error}")

        return self._read_result(getattr(response, "data", None) or {}, amount)

    def _read_result(self, result: Mapping[str, Any], amount: int) -> bool:
        if result.get("success"):
            return True

        error = result.get("error") or "TRANSFER_DENIED"
        message = result.get("message") or "Token ledger denied the transfer"
        logger.warning(
            "Token transfer denied by database",
            extra={
                "token_contract": self._token,
                "amount": str(amount),
                "error": error,
                "error_message": message,
            },
        )
        raise TransferError(f"{error}: {message}")


__all__ = ["SupabaseTokenLedger"]
