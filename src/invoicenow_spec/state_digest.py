"""Canonical state digest implementation (v2)."""
from __future__ import annotations

from typing import Any

from blake3 import blake3


def _hex_to_bytes(value: str | None) -> bytes:
    if value is None:
        return b""
    if not isinstance(value, str):
        raise TypeError("hex value must be string")
    v = value[2:] if value.startswith(("0x", "0X")) else value
    if v == "":
        return b""
    return bytes.fromhex(v)


def _u64_be(value: int) -> bytes:
    if value < 0:
        raise ValueError("u64 must be non-negative")
    return int(value).to_bytes(8, "big", signed=False)


def _i64_be(value: int) -> bytes:
    return int(value).to_bytes(8, "big", signed=True)


def _flag(value: Any) -> bytes:
    return b"\x01" if value else b"\x00"


def _str(value: str) -> bytes:
    raw = value.encode("utf-8")
    return _u64_be(len(raw)) + raw


def _addr(value: str | None) -> bytes:
    raw = _hex_to_bytes(value)
    if raw and len(raw) != 32:
        raise ValueError(f"address must be 32 bytes, got {len(raw)}")
    return raw.rjust(32, b"\x00")


def _sorted(post_state: dict[str, Any], section: str) -> list[dict[str, Any]]:
    return sorted(post_state.get(section, []), key=lambda r: _addr(r.get("address")))


def compute_state_digest(post_state: dict[str, Any]) -> str:
    """Compute state digest v2 from an exported state.

    Sections (accounts, invoices, escrows, profiles, pools, entries) are each
    sorted by key and encoded in canonical field order, then hashed with
    BLAKE3-256. Events are notifications and do not contribute.
    """
    if not isinstance(post_state, dict):
        raise TypeError("post_state must be dict")

    buf = bytearray()
    buf += _u64_be(int(post_state.get("timestamp", 0)))

    accounts = sorted(
        post_state.get("accounts", []),
        key=lambda a: (_addr(a.get("owner")), _addr(a.get("asset"))),
    )
    buf += _u64_be(len(accounts))
    for acc in accounts:
        buf += _addr(acc.get("owner"))
        buf += _addr(acc.get("asset"))
        buf += _u64_be(int(acc.get("balance", 0)))

    invoices = _sorted(post_state, "invoices")
    buf += _u64_be(len(invoices))
    for inv in invoices:
        buf += _addr(inv.get("address"))
        buf += _addr(inv.get("creator"))
        buf += _addr(inv.get("client"))
        buf += _addr(inv.get("asset"))
        buf += _str(inv.get("invoice_id", ""))
        buf += _str(inv.get("memo", ""))
        buf += _str(inv.get("status", ""))
        buf += _u64_be(int(inv.get("amount", 0)))
        # due_date is caller supplied and may precede the epoch.
        buf += _i64_be(int(inv.get("due_date", 0)))
        for field in ("created_at", "paid_at", "current_milestone"):
            buf += _u64_be(int(inv.get(field, 0)))
        buf += _flag(inv.get("escrow_funded"))
        milestones = inv.get("milestones", [])
        buf += _u64_be(len(milestones))
        for m in milestones:
            buf += _str(m.get("description", ""))
            buf += _u64_be(int(m.get("amount", 0)))
            buf += _flag(m.get("completed"))
            buf += _u64_be(int(m.get("completed_at", 0)))

    escrows = _sorted(post_state, "escrows")
    buf += _u64_be(len(escrows))
    for esc in escrows:
        buf += _addr(esc.get("address"))
        buf += _addr(esc.get("invoice"))
        buf += _addr(esc.get("asset"))
        buf += _str(esc.get("invoice_id", ""))

    profiles = _sorted(post_state, "profiles")
    buf += _u64_be(len(profiles))
    for prof in profiles:
        buf += _addr(prof.get("address"))
        buf += _addr(prof.get("owner"))
        for field in ("name", "email", "business_name"):
            buf += _str(prof.get(field, ""))
        for field in ("total_invoices", "total_received"):
            buf += _u64_be(int(prof.get(field, 0)))

    pools = _sorted(post_state, "pools")
    buf += _u64_be(len(pools))
    for pool in pools:
        buf += _addr(pool.get("address"))
        buf += _addr(pool.get("authority"))
        buf += _addr(pool.get("asset"))
        for field in (
            "house_edge_bps",
            "min_pool_reserve_bps",
            "max_win_pct_bps",
            "total_balance",
            "total_premiums_collected",
            "total_payouts",
            "total_entries",
            "total_wins",
        ):
            buf += _u64_be(int(pool.get(field, 0)))
        buf += _flag(pool.get("paused"))

    entries = _sorted(post_state, "entries")
    buf += _u64_be(len(entries))
    for entry in entries:
        buf += _addr(entry.get("address"))
        buf += _addr(entry.get("invoice"))
        buf += _addr(entry.get("participant"))
        buf += _addr(entry.get("pool"))
        buf += _str(entry.get("status", ""))
        for field in (
            "invoice_amount",
            "premium_paid",
            "win_probability_bps",
            "created_at",
            "resolved_at",
        ):
            buf += _u64_be(int(entry.get(field, 0)))
        buf += _hex_to_bytes(entry.get("random_result")).rjust(32, b"\x00")

    return blake3(bytes(buf)).hexdigest()
