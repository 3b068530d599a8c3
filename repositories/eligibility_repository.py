"""
Eligibility registry backed by Supabase.

Each row of `eligibility_credentials` is one credential issued to a holder by
the registry identified by `registry_contract`. A holder may carry several;
the effective level is the highest non-revoked one. Holders are stored
normalized (trimmed, lowercase).
"""

from __future__ import annotations

from typing import Optional

from supabase import Client  # type: ignore[import-not-found]

from domain.config import normalize_address
from domain.eligibility import EligibilityLevel
from repositories.client import get_supabase

_CREDENTIALS_TABLE: str = "eligibility_credentials"


class SupabaseEligibilityOracle:
    """Read-only EligibilityOracle; every call queries the database (no caching)."""

    def __init__(self, registry_contract: str, client: Optional[Client] = None):
        self._registry = registry_contract
        self._client = client if client is not None else get_supabase()

    def level_of(self, address: str) -> EligibilityLevel:
        """
        Get the effective eligibility level of `address`.

        Returns:
            Highest level among the holder's active credentials (NONE if none)
        """
        response = (
            self._client.table(_CREDENTIALS_TABLE)
            .select("level")
            .eq("registry_contract", self._registry)
            .eq("holder", normalize_address(address))
            .is_("revoked_at_utc", "null")
            .execute()
        )

        error = getattr(response, "error", None)
        if error:
            raise RuntimeError(f"Failed to fetch eligibility credentials: {error}")

        rows = getattr(response, "data", None) or []
        return EligibilityLevel.highest(int(row["level"]) for row in rows)


__all__ = ["SupabaseEligibilityOracle"]
