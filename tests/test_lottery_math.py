"""Pool solvency and win probability arithmetic."""

from __future__ import annotations

import pytest

from invoicenow_spec.config import U64_MAX
from invoicenow_spec.errors import ErrorCode, SpecError
from invoicenow_spec.lottery_math import (
    available_pool,
    checked_add,
    draw_value,
    effective_invoice,
    is_win,
    max_win,
    saturating_sub,
    win_probability_bps,
)


def test_max_win_reference_pool() -> None:
    assert available_pool(100_000, 2_000) == 80_000
    assert max_win(100_000, 2_000, 1_000) == 8_000


def test_max_win_empty_pool() -> None:
    assert max_win(0, 2_000, 1_000) == 0


def test_max_win_saturates_on_huge_balance() -> None:
    # u64::MAX * 8000 clamps to u64::MAX before the division.
    assert available_pool(U64_MAX, 2_000) == U64_MAX // 10_000
    assert max_win(U64_MAX, 0, 1_000) <= U64_MAX


@pytest.mark.parametrize(
    "amount, premium, edge, expected",
    [
        (1_000, 105, 500, 1_000),
        (1_000, 10_000, 500, 9_500),
        (1_000, 1, 500, 9),
        (10_000, 1, 0, 1),
        (0, 50, 500, 0),
        (1, 1, 0, 9_500),
    ],
)
def test_win_probability(amount: int, premium: int, edge: int, expected: int) -> None:
    assert win_probability_bps(amount, premium, edge) == expected


def test_win_probability_cap_applied_before_narrowing() -> None:
    # 7_000_000 bps would truncate to 53_184 as a u16 and then cap; the
    # result must simply be the cap.
    assert win_probability_bps(1_000, 735_000, 500) == 9_500


def test_win_probability_stays_in_range() -> None:
    for premium in (1, 7, 99, 1_050, 9_975, 10_000, 10**9):
        p = win_probability_bps(1_000, premium, 500)
        assert 0 <= p <= 9_500


def test_effective_invoice_overflow() -> None:
    with pytest.raises(SpecError) as exc:
        effective_invoice(U64_MAX, 500)
    assert exc.value.code == ErrorCode.OVERFLOW


def test_checked_add_overflow() -> None:
    assert checked_add(U64_MAX - 1, 1) == U64_MAX
    with pytest.raises(SpecError) as exc:
        checked_add(U64_MAX, 1)
    assert exc.value.code == ErrorCode.OVERFLOW


def test_saturating_sub_floors_at_zero() -> None:
    assert saturating_sub(500, 1_000) == 0
    assert saturating_sub(1_000, 500) == 500


def test_draw_value_little_endian() -> None:
    assert draw_value(b"\xe7\x03" + bytes(30)) == 999
    assert draw_value(b"\x03\xe7" + bytes(30)) == 0xE703 % 10_000
    assert draw_value(b"\xff\xff" + b"\xaa" * 30) == 5_535


def test_draw_value_rejects_bad_length() -> None:
    for bad in (b"", bytes(31), bytes(33)):
        with pytest.raises(SpecError) as exc:
            draw_value(bad)
        assert exc.value.code == ErrorCode.INVALID_RANDOM_VALUE


def test_is_win_strict_comparison() -> None:
    assert is_win(999, 1_000)
    assert not is_win(1_000, 1_000)
    assert not is_win(0, 0)
