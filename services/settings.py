"""
Sale settings loaded from the environment.

Environment variables (all required unless noted):
- SALE_BACKEND: "memory" (default) or "supabase"
- SALE_RECIPIENT_ACCOUNT, SALE_TOKEN_CONTRACT, SALE_ELIGIBILITY_CONTRACT: addresses
- SALE_OPERATOR_ACCOUNT: account the sale acts as on the token ledger
- SALE_PRESALE_START, SALE_BONUS_STAGE_START, SALE_NO_BONUS_STAGE_START, SALE_END:
  ISO-8601 UTC timestamps (e.g. 2026-11-01T12:00:00Z)
- SALE_UNIT_PRICE, SALE_PRESALE_TOKEN_CAP, SALE_TOTAL_TOKEN_SUPPLY,
  SALE_PRESALE_BONUS_PERCENT, SALE_BONUS_PERCENT, SALE_MINIMUM_PRESALE_CONTRIBUTION: integers
- SALE_TOKEN_OWNER: holder of the sale supply (memory backend only)
- SALE_ELIGIBILITY_CREDENTIALS: optional comma-separated `address:level` pairs
  issued to the in-memory registry at startup (memory backend only)
- SALE_CREATED_AT: optional ISO-8601 UTC timestamp of the original sale construction,
  used when a persisted sale is restarted after its presale has begun
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Mapping, Optional, Tuple

from dotenv import load_dotenv

from domain.config import SaleConfig

env_path = Path(__file__).parent.parent / ".env"

BACKEND_MEMORY = "memory"
BACKEND_SUPABASE = "supabase"


@dataclass(frozen=True, slots=True)
class SaleSettings:
    backend: str
    config: SaleConfig
    operator_account: str
    token_owner: Optional[str] = None
    created_at: Optional[datetime] = None
    credentials: Tuple[Tuple[str, int], ...] = ()


def _require(env: Mapping[str, str], name: str) -> str:
    value = env.get(name)
    if not value:
        raise RuntimeError(f"Missing environment variable: {name}.")
    return value


def _parse_timestamp(env: Mapping[str, str], name: str) -> datetime:
    text = _require(env, name)
    try:
        dt = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError as e:
        raise RuntimeError(f"{name} must be an ISO-8601 timestamp, got {text!r}") from e
    if dt.tzinfo is None or dt.utcoffset() is None:
        raise RuntimeError(f"{name} must include a UTC offset, got {text!r}")
    return dt.astimezone(timezone.utc)


def _parse_int(env: Mapping[str, str], name: str) -> int:
    text = _require(env, name)
    try:
        return int(text)
    except ValueError as e:
        raise RuntimeError(f"{name} must be an integer, got {text!r}") from e


def _parse_credentials(env: Mapping[str, str], name: str) -> Tuple[Tuple[str, int], ...]:
    text = env.get(name, "").strip()
    if not text:
        return ()

    credentials = []
    for entry in text.split(","):
        address, _, level = entry.strip().rpartition(":")
        if not address or not level.strip().isdigit():
            raise RuntimeError(f"{name} entries must look like address:level, got {entry!r}")
        credentials.append((address.strip(), int(level)))
    return tuple(credentials)


def load_sale_settings(env: Optional[Mapping[str, str]] = None) -> SaleSettings:
    """
    Build SaleSettings from environment variables.

    Args:
        env: Mapping to read from (default: os.environ after loading .env)

    Raises:
        RuntimeError: If a variable is missing or malformed
    """
    if env is None:
        load_dotenv(dotenv_path=env_path)
        env = os.environ

    backend = env.get("SALE_BACKEND", BACKEND_MEMORY).strip().lower()
    if backend not in (BACKEND_MEMORY, BACKEND_SUPABASE):
        raise RuntimeError(f"SALE_BACKEND must be '{BACKEND_MEMORY}' or '{BACKEND_SUPABASE}', got {backend!r}")

    config = SaleConfig(
        recipient_account=_require(env, "SALE_RECIPIENT_ACCOUNT"),
        token_contract=_require(env, "SALE_TOKEN_CONTRACT"),
        eligibility_contract=_require(env, "SALE_ELIGIBILITY_CONTRACT"),
        presale_start=_parse_timestamp(env, "SALE_PRESALE_START"),
        bonus_stage_start=_parse_timestamp(env, "SALE_BONUS_STAGE_START"),
        no_bonus_stage_start=_parse_timestamp(env, "SALE_NO_BONUS_STAGE_START"),
        sale_end=_parse_timestamp(env, "SALE_END"),
        unit_price=_parse_int(env, "SALE_UNIT_PRICE"),
        presale_token_cap=_parse_int(env, "SALE_PRESALE_TOKEN_CAP"),
        total_token_supply=_parse_int(env, "SALE_TOTAL_TOKEN_SUPPLY"),
        presale_bonus_percent=_parse_int(env, "SALE_PRESALE_BONUS_PERCENT"),
        sale_bonus_percent=_parse_int(env, "SALE_BONUS_PERCENT"),
        minimum_presale_contribution=_parse_int(env, "SALE_MINIMUM_PRESALE_CONTRIBUTION"),
    )

    return SaleSettings(
        backend=backend,
        config=config,
        operator_account=_require(env, "SALE_OPERATOR_ACCOUNT"),
        token_owner=_require(env, "SALE_TOKEN_OWNER") if backend == BACKEND_MEMORY else None,
        created_at=_parse_timestamp(env, "SALE_CREATED_AT") if env.get("SALE_CREATED_AT") else None,
        credentials=_parse_credentials(env, "SALE_ELIGIBILITY_CREDENTIALS") if backend == BACKEND_MEMORY else (),
    )
