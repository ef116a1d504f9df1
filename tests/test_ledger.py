"""Token account transfer primitive."""

from __future__ import annotations

import pytest

from invoicenow_spec import ledger
from invoicenow_spec.config import U64_MAX
from invoicenow_spec.errors import ErrorCode, SpecError
from invoicenow_spec.test_accounts import ALICE, BOB, CAROL, USDC
from invoicenow_spec.types import LedgerState


def _state() -> LedgerState:
    state = LedgerState()
    ledger.credit(state, ALICE, USDC, 1_000)
    return state


def test_transfer_moves_balance_and_opens_destination() -> None:
    state = _state()
    ledger.transfer(state, ALICE, BOB, USDC, 400, authorizer=ALICE)
    assert ledger.balance_of(state, ALICE, USDC) == 600
    assert ledger.balance_of(state, BOB, USDC) == 400
    assert state.accounts[(BOB, USDC)].owner == BOB


def test_transfer_requires_source_owner() -> None:
    state = _state()
    with pytest.raises(SpecError) as exc:
        ledger.transfer(state, ALICE, BOB, USDC, 1, authorizer=CAROL)
    assert exc.value.code == ErrorCode.UNAUTHORIZED
    assert ledger.balance_of(state, ALICE, USDC) == 1_000


def test_transfer_insufficient_balance_leaves_state() -> None:
    state = _state()
    with pytest.raises(SpecError) as exc:
        ledger.transfer(state, ALICE, BOB, USDC, 1_001, authorizer=ALICE)
    assert exc.value.code == ErrorCode.INSUFFICIENT_BALANCE
    assert (BOB, USDC) not in state.accounts


def test_transfer_missing_source() -> None:
    state = _state()
    with pytest.raises(SpecError) as exc:
        ledger.transfer(state, CAROL, BOB, USDC, 0, authorizer=CAROL)
    assert exc.value.code == ErrorCode.ACCOUNT_NOT_FOUND


def test_transfer_destination_overflow() -> None:
    state = _state()
    ledger.credit(state, BOB, USDC, U64_MAX)
    with pytest.raises(SpecError) as exc:
        ledger.transfer(state, ALICE, BOB, USDC, 1, authorizer=ALICE)
    assert exc.value.code == ErrorCode.OVERFLOW
    assert ledger.balance_of(state, ALICE, USDC) == 1_000


def test_transfer_to_self_is_noop() -> None:
    state = _state()
    ledger.transfer(state, ALICE, ALICE, USDC, 1_000, authorizer=ALICE)
    assert ledger.balance_of(state, ALICE, USDC) == 1_000


def test_credit_rejects_negative() -> None:
    with pytest.raises(SpecError) as exc:
        ledger.credit(LedgerState(), ALICE, USDC, -1)
    assert exc.value.code == ErrorCode.INVALID_AMOUNT


def test_assets_are_separate_accounts() -> None:
    state = _state()
    other = bytes(32)
    assert ledger.balance_of(state, ALICE, other) == 0
    with pytest.raises(SpecError):
        ledger.transfer(state, ALICE, BOB, other, 1, authorizer=ALICE)
