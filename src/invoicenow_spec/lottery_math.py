"""Lottery solvency and probability arithmetic.

All amounts are u64; intermediate products of the probability formula are
u128. Increments are checked (overflow raises), while the liquidity bound
uses saturating multiplication so a huge pool balance can only ever clamp,
never wrap below the reserve floor.
"""

from __future__ import annotations

from .config import (
    BPS_DIVISOR,
    MAX_WIN_PROBABILITY_BPS,
    RANDOM_VALUE_LEN,
    U64_MAX,
    U128_MAX,
)
from .errors import ErrorCode, SpecError


def checked_add(a: int, b: int) -> int:
    result = a + b
    if result > U64_MAX:
        raise SpecError(ErrorCode.OVERFLOW, "u64 addition overflow")
    return result


def checked_mul(a: int, b: int, limit: int = U64_MAX) -> int:
    result = a * b
    if result > limit:
        raise SpecError(ErrorCode.OVERFLOW, "multiplication overflow")
    return result


def saturating_mul(a: int, b: int) -> int:
    return min(a * b, U64_MAX)


def saturating_sub(a: int, b: int) -> int:
    return max(a - b, 0)


def available_pool(total_balance: int, min_pool_reserve_bps: int) -> int:
    """Liquidity left after setting aside the reserve floor."""
    return saturating_mul(total_balance, BPS_DIVISOR - min_pool_reserve_bps) // BPS_DIVISOR


def max_win(total_balance: int, min_pool_reserve_bps: int, max_win_pct_bps: int) -> int:
    """Largest invoice amount a single entry may expose the pool to."""
    available = available_pool(total_balance, min_pool_reserve_bps)
    return saturating_mul(available, max_win_pct_bps) // BPS_DIVISOR


def effective_invoice(invoice_amount: int, house_edge_bps: int) -> int:
    """Invoice amount grossed up by the house edge: amount * (1 + edge)."""
    return checked_mul(invoice_amount, BPS_DIVISOR + house_edge_bps) // BPS_DIVISOR


def win_probability_bps(invoice_amount: int, premium: int, house_edge_bps: int) -> int:
    """premium / (invoice_amount * (1 + house_edge)), in bps, capped at 95%.

    A zero effective invoice yields probability 0 rather than an error.
    """
    effective = effective_invoice(invoice_amount, house_edge_bps)
    if effective == 0:
        return 0
    scaled = checked_mul(premium, BPS_DIVISOR, limit=U128_MAX)
    return min(MAX_WIN_PROBABILITY_BPS, scaled // effective)


def draw_value(random_value: bytes) -> int:
    """First two bytes as little-endian u16, reduced modulo 10000."""
    if len(random_value) != RANDOM_VALUE_LEN:
        raise SpecError(ErrorCode.INVALID_RANDOM_VALUE, "random value must be 32 bytes")
    return int.from_bytes(random_value[:2], "little") % BPS_DIVISOR


def is_win(draw: int, probability_bps: int) -> bool:
    return draw < probability_bps
