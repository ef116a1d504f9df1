"""Helpers shared by the instruction specs."""

from __future__ import annotations

from typing import Any, Optional

from ..addresses import pool_address
from ..config import ASSET_ID_LEN, U64_MAX
from ..errors import ErrorCode, SpecError
from ..types import Instruction, Invoice, LedgerState, LotteryEntry, LotteryPool


def now(state: LedgerState, ix: Instruction) -> int:
    return ix.timestamp if ix.timestamp is not None else state.timestamp


def payload_bytes(p: dict, key: str) -> bytes:
    v = p.get(key)
    if isinstance(v, bytes):
        return v
    if isinstance(v, (list, tuple, bytearray)):
        try:
            return bytes(v)
        except (TypeError, ValueError):
            raise SpecError(ErrorCode.INVALID_PAYLOAD, f"{key} is not a byte sequence") from None
    raise SpecError(ErrorCode.INVALID_PAYLOAD, f"{key} must be bytes")


def payload_asset(p: dict, key: str = "asset") -> bytes:
    asset = payload_bytes(p, key)
    if len(asset) != ASSET_ID_LEN:
        raise SpecError(ErrorCode.INVALID_PAYLOAD, f"{key} must be {ASSET_ID_LEN} bytes")
    return asset


def payload_u64(p: dict, key: str, default: Optional[int] = None) -> int:
    v: Any = p.get(key, default)
    if isinstance(v, bool) or not isinstance(v, int):
        raise SpecError(ErrorCode.INVALID_PAYLOAD, f"{key} must be an integer")
    if v < 0 or v > U64_MAX:
        raise SpecError(ErrorCode.INVALID_AMOUNT, f"{key} out of u64 range")
    return v


def payload_str(p: dict, key: str, default: Optional[str] = None) -> str:
    v = p.get(key, default)
    if not isinstance(v, str):
        raise SpecError(ErrorCode.INVALID_PAYLOAD, f"{key} must be a string")
    return v


def byte_len(s: str) -> int:
    return len(s.encode("utf-8"))


def require_invoice(state: LedgerState, address: bytes) -> Invoice:
    invoice = state.invoices.get(address)
    if invoice is None:
        raise SpecError(ErrorCode.INVOICE_NOT_FOUND, "invoice not found")
    return invoice


def require_pool(state: LedgerState, asset: bytes) -> LotteryPool:
    pool = state.pools.get(pool_address(asset))
    if pool is None:
        raise SpecError(ErrorCode.POOL_NOT_FOUND, "lottery pool not found")
    return pool


def require_entry(state: LedgerState, address: bytes) -> LotteryEntry:
    entry = state.entries.get(address)
    if entry is None:
        raise SpecError(ErrorCode.ENTRY_NOT_FOUND, "lottery entry not found")
    return entry
