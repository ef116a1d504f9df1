"""Milestone escrow specs (fund / release)."""

from __future__ import annotations

from .. import events, ledger
from ..addresses import escrow_address
from ..errors import ErrorCode, SpecError
from ..types import (
    Escrow,
    Instruction,
    InstructionType,
    InvoiceStatus,
    LedgerState,
)
from .common import now, payload_bytes, payload_u64, require_invoice


def verify(state: LedgerState, ix: Instruction) -> None:
    p = ix.payload
    tt = ix.ix_type
    if tt == InstructionType.FUND_ESCROW:
        _verify_fund(state, ix, p)
    elif tt == InstructionType.RELEASE_MILESTONE:
        _verify_release(state, ix, p)
    else:
        raise SpecError(ErrorCode.INVALID_TYPE, f"unsupported escrow instruction: {tt}")


def apply(state: LedgerState, ix: Instruction) -> LedgerState:
    p = ix.payload
    tt = ix.ix_type
    if tt == InstructionType.FUND_ESCROW:
        return _apply_fund(state, ix, p)
    elif tt == InstructionType.RELEASE_MILESTONE:
        return _apply_release(state, ix, p)
    raise SpecError(ErrorCode.INVALID_TYPE, f"unsupported escrow instruction: {tt}")


# --- FUND_ESCROW ---

def _verify_fund(state: LedgerState, ix: Instruction, p: dict) -> None:
    invoice = require_invoice(state, payload_bytes(p, "invoice"))
    amount = payload_u64(p, "amount")

    if invoice.status != InvoiceStatus.PENDING:
        raise SpecError(ErrorCode.INVALID_INVOICE_STATUS, "invoice not pending")
    if amount < invoice.amount:
        raise SpecError(ErrorCode.INSUFFICIENT_FUNDING, "funding below invoice amount")
    if not invoice.milestones:
        raise SpecError(ErrorCode.NO_MILESTONES, "no milestones defined for escrow")

    # The escrow record is created exactly once per invoice id.
    if escrow_address(invoice.invoice_id) in state.escrows:
        raise SpecError(ErrorCode.ACCOUNT_EXISTS, "escrow already exists")


def _apply_fund(state: LedgerState, ix: Instruction, p: dict) -> LedgerState:
    invoice = state.invoices[payload_bytes(p, "invoice")]
    amount = p["amount"]
    eid = escrow_address(invoice.invoice_id)

    state.escrows[eid] = Escrow(
        address=eid,
        invoice_id=invoice.invoice_id,
        invoice=invoice.address,
        asset=invoice.asset,
    )
    ledger.transfer(state, ix.signer, eid, invoice.asset, amount, authorizer=ix.signer)

    invoice.client = ix.signer
    invoice.escrow_funded = True
    invoice.status = InvoiceStatus.ESCROW_FUNDED

    events.emit(
        state,
        events.ESCROW_FUNDED,
        invoice=invoice.address,
        client=ix.signer,
        amount=amount,
    )
    return state


# --- RELEASE_MILESTONE ---

def _verify_release(state: LedgerState, ix: Instruction, p: dict) -> None:
    invoice = require_invoice(state, payload_bytes(p, "invoice"))

    if invoice.status != InvoiceStatus.ESCROW_FUNDED:
        raise SpecError(ErrorCode.INVALID_INVOICE_STATUS, "invoice escrow not active")
    if not invoice.escrow_funded:
        raise SpecError(ErrorCode.ESCROW_NOT_FUNDED, "escrow not funded")
    if invoice.current_milestone >= len(invoice.milestones):
        raise SpecError(ErrorCode.ALL_MILESTONES_COMPLETE, "all milestones already complete")
    if ix.signer != invoice.creator and ix.signer != invoice.client:
        raise SpecError(ErrorCode.UNAUTHORIZED, "only creator or client may release")

    if escrow_address(invoice.invoice_id) not in state.escrows:
        raise SpecError(ErrorCode.ESCROW_NOT_FOUND, "escrow not found")


def _apply_release(state: LedgerState, ix: Instruction, p: dict) -> LedgerState:
    invoice = state.invoices[payload_bytes(p, "invoice")]
    escrow = state.escrows[escrow_address(invoice.invoice_id)]
    released_at = now(state, ix)

    index = invoice.current_milestone
    milestone = invoice.milestones[index]

    # Escrow vault pays the creator under the escrow's own authority.
    ledger.transfer(
        state,
        escrow.address,
        invoice.creator,
        escrow.asset,
        milestone.amount,
        authorizer=escrow.address,
    )

    milestone.completed = True
    milestone.completed_at = released_at
    invoice.current_milestone = index + 1

    if invoice.current_milestone >= len(invoice.milestones):
        invoice.status = InvoiceStatus.PAID
        invoice.paid_at = released_at

    events.emit(
        state,
        events.MILESTONE_RELEASED,
        invoice=invoice.address,
        milestone_index=index,
        amount=milestone.amount,
    )
    return state
