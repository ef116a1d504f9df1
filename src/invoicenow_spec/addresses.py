"""Deterministic record addresses.

Every record is stored under a BLAKE3 digest of a domain seed and the fields
that make it unique, so a second creation attempt for the same key collides
with the existing record instead of silently overwriting it.
"""

from __future__ import annotations

from blake3 import blake3

from .config import (
    SEED_ESCROW,
    SEED_INVOICE,
    SEED_LOTTERY_ENTRY,
    SEED_LOTTERY_POOL,
    SEED_PROFILE,
)


def _derive(seed: bytes, *parts: bytes) -> bytes:
    buf = bytearray(seed)
    for part in parts:
        # Length prefix keeps ("ab", "c") and ("a", "bc") apart.
        buf += len(part).to_bytes(4, "big")
        buf += part
    return blake3(bytes(buf)).digest()


def invoice_address(creator: bytes, invoice_id: str) -> bytes:
    return _derive(SEED_INVOICE, creator, invoice_id.encode("utf-8"))


def escrow_address(invoice_id: str) -> bytes:
    return _derive(SEED_ESCROW, invoice_id.encode("utf-8"))


def pool_address(asset: bytes) -> bytes:
    return _derive(SEED_LOTTERY_POOL, asset)


def entry_address(invoice: bytes, participant: bytes) -> bytes:
    return _derive(SEED_LOTTERY_ENTRY, invoice, participant)


def profile_address(owner: bytes) -> bytes:
    return _derive(SEED_PROFILE, owner)
