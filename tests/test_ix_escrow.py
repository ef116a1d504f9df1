"""Milestone escrow fixtures (fund / release)."""

from __future__ import annotations

import pytest

from invoicenow_spec import ledger
from invoicenow_spec.addresses import escrow_address, invoice_address
from invoicenow_spec.errors import ErrorCode
from invoicenow_spec.events import ESCROW_FUNDED, MILESTONE_RELEASED, events_named
from invoicenow_spec.state_transition import apply_ix
from invoicenow_spec.test_accounts import ALICE, BOB, CAROL, USDC
from invoicenow_spec.types import (
    Escrow,
    Instruction,
    InstructionType,
    Invoice,
    InvoiceStatus,
    LedgerState,
    Milestone,
)

T0 = 1_700_000_000
FIXTURE = "instructions/escrow/{}.json"


def _base_state() -> LedgerState:
    state = LedgerState(timestamp=T0)
    ledger.credit(state, BOB, USDC, 10_000)
    ledger.credit(state, ALICE, USDC, 0)
    return state


def _invoice(amounts: list[int], invoice_id: str = "INV-ESC") -> Invoice:
    return Invoice(
        address=invoice_address(ALICE, invoice_id),
        creator=ALICE,
        invoice_id=invoice_id,
        amount=sum(amounts),
        asset=USDC,
        due_date=T0 + 86_400,
        created_at=T0,
        milestones=[Milestone(description=f"m{i}", amount=a) for i, a in enumerate(amounts)],
    )


def _funded_state(amounts: list[int]) -> tuple[LedgerState, Invoice]:
    """Escrow-funded pre_state with the vault holding the full invoice amount."""
    state = _base_state()
    invoice = _invoice(amounts)
    invoice.client = BOB
    invoice.escrow_funded = True
    invoice.status = InvoiceStatus.ESCROW_FUNDED
    state.invoices[invoice.address] = invoice
    eid = escrow_address(invoice.invoice_id)
    state.escrows[eid] = Escrow(address=eid, invoice_id=invoice.invoice_id, invoice=invoice.address, asset=USDC)
    ledger.credit(state, eid, USDC, invoice.amount)
    return state, invoice


def _mk_fund(invoice: Invoice, amount: int, signer: bytes = BOB) -> Instruction:
    return Instruction(
        InstructionType.FUND_ESCROW, signer, {"invoice": invoice.address, "amount": amount}, timestamp=T0 + 10
    )


def _mk_release(invoice: Invoice, signer: bytes, ts: int = T0 + 100) -> Instruction:
    return Instruction(InstructionType.RELEASE_MILESTONE, signer, {"invoice": invoice.address}, timestamp=ts)


# --- fund_escrow specs ---


def test_fund_escrow_success(state_test_group) -> None:
    state = _base_state()
    invoice = _invoice([400, 600])
    state.invoices[invoice.address] = invoice
    post, result = state_test_group(
        FIXTURE.format("fund"), "fund_escrow_success", state, _mk_fund(invoice, 1_000)
    )
    assert result.ok
    eid = escrow_address(invoice.invoice_id)
    funded = post.invoices[invoice.address]
    assert funded.status == InvoiceStatus.ESCROW_FUNDED
    assert funded.escrow_funded
    assert funded.client == BOB
    assert eid in post.escrows
    assert ledger.balance_of(post, BOB, USDC) == 9_000
    assert ledger.balance_of(post, eid, USDC) == 1_000
    (event,) = events_named(post, ESCROW_FUNDED)
    assert event.fields == {"invoice": invoice.address, "client": BOB, "amount": 1_000}


def test_fund_escrow_insufficient_funding(state_test_group) -> None:
    state = _base_state()
    invoice = _invoice([400, 600])
    state.invoices[invoice.address] = invoice
    post, result = state_test_group(
        FIXTURE.format("fund"), "fund_escrow_insufficient_funding", state, _mk_fund(invoice, 999)
    )
    assert result.error.code == ErrorCode.INSUFFICIENT_FUNDING
    assert post.invoices[invoice.address].status == InvoiceStatus.PENDING
    assert ledger.balance_of(post, BOB, USDC) == 10_000
    assert not post.escrows


def test_fund_escrow_no_milestones(state_test_group) -> None:
    state = _base_state()
    invoice = _invoice([])
    invoice.amount = 500
    state.invoices[invoice.address] = invoice
    _, result = state_test_group(
        FIXTURE.format("fund"), "fund_escrow_no_milestones", state, _mk_fund(invoice, 500)
    )
    assert result.error.code == ErrorCode.NO_MILESTONES


def test_fund_escrow_twice_rejected(state_test_group) -> None:
    state, invoice = _funded_state([400, 600])
    post, result = state_test_group(
        FIXTURE.format("fund"), "fund_escrow_twice_rejected", state, _mk_fund(invoice, 1_000)
    )
    assert result.error.code == ErrorCode.INVALID_INVOICE_STATUS
    assert ledger.balance_of(post, BOB, USDC) == 10_000


def test_fund_escrow_client_balance_too_low(state_test_group) -> None:
    state = _base_state()
    invoice = _invoice([20_000])
    state.invoices[invoice.address] = invoice
    post, result = state_test_group(
        FIXTURE.format("fund"), "fund_escrow_client_balance_too_low", state, _mk_fund(invoice, 20_000)
    )
    assert result.error.code == ErrorCode.INSUFFICIENT_BALANCE
    assert post is state
    assert post.invoices[invoice.address].status == InvoiceStatus.PENDING
    assert not post.escrows


def test_fund_escrow_overfunding_held_in_vault(state_test_group) -> None:
    state = _base_state()
    invoice = _invoice([400, 600])
    state.invoices[invoice.address] = invoice
    post, result = state_test_group(
        FIXTURE.format("fund"), "fund_escrow_overfunding_held_in_vault", state, _mk_fund(invoice, 1_500)
    )
    assert result.ok
    assert ledger.balance_of(post, escrow_address(invoice.invoice_id), USDC) == 1_500


# --- release_milestone specs ---


@pytest.mark.parametrize("amounts", [[1_000], [400, 600], [100, 200, 300, 400], [10] * 10])
def test_release_milestones_in_order(amounts: list[int]) -> None:
    state, invoice = _funded_state(amounts)
    signers = [ALICE, BOB]

    for i in range(len(amounts)):
        current = state.invoices[invoice.address]
        assert current.status == InvoiceStatus.ESCROW_FUNDED
        assert current.current_milestone == i
        state, result = apply_ix(state, _mk_release(invoice, signers[i % 2], ts=T0 + 100 + i))
        assert result.ok, result.error

    final = state.invoices[invoice.address]
    assert final.current_milestone == len(amounts)
    assert final.status == InvoiceStatus.PAID
    assert final.paid_at == T0 + 100 + len(amounts) - 1
    assert all(m.completed for m in final.milestones)
    assert ledger.balance_of(state, ALICE, USDC) == sum(amounts)
    assert ledger.balance_of(state, escrow_address(invoice.invoice_id), USDC) == 0
    released = events_named(state, MILESTONE_RELEASED)
    assert [e.fields["milestone_index"] for e in released] == list(range(len(amounts)))


def test_release_milestone_first_of_two(state_test_group) -> None:
    state, invoice = _funded_state([400, 600])
    post, result = state_test_group(
        FIXTURE.format("release"), "release_milestone_first_of_two", state, _mk_release(invoice, BOB)
    )
    assert result.ok
    updated = post.invoices[invoice.address]
    assert updated.current_milestone == 1
    assert updated.milestones[0].completed
    assert updated.milestones[0].completed_at == T0 + 100
    assert not updated.milestones[1].completed
    assert updated.status == InvoiceStatus.ESCROW_FUNDED
    assert updated.paid_at == 0
    assert ledger.balance_of(post, ALICE, USDC) == 400


def test_release_milestone_after_paid(state_test_group) -> None:
    state, invoice = _funded_state([1_000])
    state, result = apply_ix(state, _mk_release(invoice, ALICE))
    assert result.ok
    post, result = state_test_group(
        FIXTURE.format("release"), "release_milestone_after_paid", state, _mk_release(invoice, ALICE)
    )
    assert result.error.code == ErrorCode.INVALID_INVOICE_STATUS
    assert ledger.balance_of(post, ALICE, USDC) == 1_000


def test_release_milestone_all_complete(state_test_group) -> None:
    state, invoice = _funded_state([1_000])
    state.invoices[invoice.address].current_milestone = 1
    _, result = state_test_group(
        FIXTURE.format("release"), "release_milestone_all_complete", state, _mk_release(invoice, ALICE)
    )
    assert result.error.code == ErrorCode.ALL_MILESTONES_COMPLETE


def test_release_milestone_escrow_flag_unset(state_test_group) -> None:
    state, invoice = _funded_state([1_000])
    state.invoices[invoice.address].escrow_funded = False
    _, result = state_test_group(
        FIXTURE.format("release"), "release_milestone_escrow_flag_unset", state, _mk_release(invoice, ALICE)
    )
    assert result.error.code == ErrorCode.ESCROW_NOT_FUNDED


def test_release_milestone_unauthorized(state_test_group) -> None:
    state, invoice = _funded_state([400, 600])
    post, result = state_test_group(
        FIXTURE.format("release"), "release_milestone_unauthorized", state, _mk_release(invoice, CAROL)
    )
    assert result.error.code == ErrorCode.UNAUTHORIZED
    assert post.invoices[invoice.address].current_milestone == 0


def test_release_milestone_vault_short(state_test_group) -> None:
    """Milestones summing past the funded amount fail at the transfer step."""
    state, invoice = _funded_state([400, 600])
    state.accounts[(escrow_address(invoice.invoice_id), USDC)].balance = 300
    post, result = state_test_group(
        FIXTURE.format("release"), "release_milestone_vault_short", state, _mk_release(invoice, ALICE)
    )
    assert result.error.code == ErrorCode.INSUFFICIENT_BALANCE
    unchanged = post.invoices[invoice.address]
    assert unchanged.current_milestone == 0
    assert not unchanged.milestones[0].completed
    assert ledger.balance_of(post, ALICE, USDC) == 0
