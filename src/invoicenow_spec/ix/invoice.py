"""Invoice lifecycle specs (create / mark paid / cancel)."""

from __future__ import annotations

from .. import events
from ..addresses import invoice_address
from ..config import (
    I64_MAX,
    I64_MIN,
    MAX_INVOICE_ID_LEN,
    MAX_MEMO_LEN,
    MAX_MILESTONES,
    MAX_TX_REFERENCE_LEN,
)
from ..errors import ErrorCode, SpecError
from ..types import (
    Instruction,
    InstructionType,
    Invoice,
    InvoiceStatus,
    LedgerState,
    Milestone,
)
from .common import (
    byte_len,
    now,
    payload_asset,
    payload_bytes,
    payload_str,
    payload_u64,
    require_invoice,
)


def verify(state: LedgerState, ix: Instruction) -> None:
    p = ix.payload
    tt = ix.ix_type
    if tt == InstructionType.CREATE_INVOICE:
        _verify_create(state, ix, p)
    elif tt == InstructionType.MARK_PAID:
        _verify_mark_paid(state, ix, p)
    elif tt == InstructionType.CANCEL_INVOICE:
        _verify_cancel(state, ix, p)
    else:
        raise SpecError(ErrorCode.INVALID_TYPE, f"unsupported invoice instruction: {tt}")


def apply(state: LedgerState, ix: Instruction) -> LedgerState:
    p = ix.payload
    tt = ix.ix_type
    if tt == InstructionType.CREATE_INVOICE:
        return _apply_create(state, ix, p)
    elif tt == InstructionType.MARK_PAID:
        return _apply_mark_paid(state, ix, p)
    elif tt == InstructionType.CANCEL_INVOICE:
        return _apply_cancel(state, ix, p)
    raise SpecError(ErrorCode.INVALID_TYPE, f"unsupported invoice instruction: {tt}")


def _parse_milestones(raw: object) -> list[Milestone]:
    if raw is None:
        return []
    if not isinstance(raw, (list, tuple)):
        raise SpecError(ErrorCode.INVALID_PAYLOAD, "milestones must be a list")
    if len(raw) > MAX_MILESTONES:
        raise SpecError(ErrorCode.TOO_MANY_MILESTONES, "too many milestones (max 10)")
    out: list[Milestone] = []
    for m in raw:
        if isinstance(m, Milestone):
            m = {"description": m.description, "amount": m.amount}
        if not isinstance(m, dict):
            raise SpecError(ErrorCode.INVALID_PAYLOAD, "invalid milestone")
        out.append(
            Milestone(
                description=payload_str(m, "description", ""),
                amount=payload_u64(m, "amount", 0),
            )
        )
    return out


# --- CREATE_INVOICE ---

def _verify_create(state: LedgerState, ix: Instruction, p: dict) -> None:
    invoice_id = payload_str(p, "invoice_id")
    if byte_len(invoice_id) > MAX_INVOICE_ID_LEN:
        raise SpecError(ErrorCode.INVOICE_ID_TOO_LONG, "invoice id too long (max 32 chars)")

    memo = payload_str(p, "memo", "")
    if byte_len(memo) > MAX_MEMO_LEN:
        raise SpecError(ErrorCode.MEMO_TOO_LONG, "memo too long (max 256 chars)")

    # Milestone amounts are not required to sum to the invoice amount.
    _parse_milestones(p.get("milestones"))

    payload_u64(p, "amount")
    payload_asset(p)
    due_date = p.get("due_date", 0)
    if isinstance(due_date, bool) or not isinstance(due_date, int):
        raise SpecError(ErrorCode.INVALID_PAYLOAD, "due_date must be an integer")
    if not I64_MIN <= due_date <= I64_MAX:
        raise SpecError(ErrorCode.INVALID_PAYLOAD, "due_date out of i64 range")

    if invoice_address(ix.signer, invoice_id) in state.invoices:
        raise SpecError(ErrorCode.ACCOUNT_EXISTS, "invoice already exists")


def _apply_create(state: LedgerState, ix: Instruction, p: dict) -> LedgerState:
    invoice_id = p["invoice_id"]
    address = invoice_address(ix.signer, invoice_id)
    created_at = now(state, ix)

    invoice = Invoice(
        address=address,
        creator=ix.signer,
        invoice_id=invoice_id,
        amount=p["amount"],
        asset=payload_bytes(p, "asset"),
        due_date=p.get("due_date", 0),
        memo=p.get("memo", ""),
        client=None,
        status=InvoiceStatus.PENDING,
        created_at=created_at,
        paid_at=0,
        milestones=_parse_milestones(p.get("milestones")),
        current_milestone=0,
        escrow_funded=False,
    )
    state.invoices[address] = invoice

    events.emit(
        state,
        events.INVOICE_CREATED,
        invoice=address,
        creator=invoice.creator,
        invoice_id=invoice_id,
        amount=invoice.amount,
        due_date=invoice.due_date,
    )
    return state


# --- MARK_PAID ---

def _verify_mark_paid(state: LedgerState, ix: Instruction, p: dict) -> None:
    invoice = require_invoice(state, payload_bytes(p, "invoice"))
    if invoice.status != InvoiceStatus.PENDING:
        raise SpecError(ErrorCode.INVALID_INVOICE_STATUS, "invoice not pending")

    reference = payload_str(p, "reference", "")
    if byte_len(reference) > MAX_TX_REFERENCE_LEN:
        raise SpecError(ErrorCode.TX_REFERENCE_TOO_LONG, "transaction reference too long")


def _apply_mark_paid(state: LedgerState, ix: Instruction, p: dict) -> LedgerState:
    # The referenced payment is recorded, not verified.
    invoice = state.invoices[payload_bytes(p, "invoice")]
    paid_at = now(state, ix)

    invoice.status = InvoiceStatus.PAID
    invoice.paid_at = paid_at
    invoice.client = ix.signer

    events.emit(
        state,
        events.INVOICE_PAID,
        invoice=invoice.address,
        payer=ix.signer,
        reference=p.get("reference", ""),
        paid_at=paid_at,
    )
    return state


# --- CANCEL_INVOICE ---

def _verify_cancel(state: LedgerState, ix: Instruction, p: dict) -> None:
    invoice = require_invoice(state, payload_bytes(p, "invoice"))
    if invoice.status != InvoiceStatus.PENDING:
        raise SpecError(ErrorCode.INVALID_INVOICE_STATUS, "invoice not pending")
    if ix.signer != invoice.creator:
        raise SpecError(ErrorCode.UNAUTHORIZED, "only the creator may cancel")


def _apply_cancel(state: LedgerState, ix: Instruction, p: dict) -> LedgerState:
    invoice = state.invoices[payload_bytes(p, "invoice")]
    invoice.status = InvoiceStatus.CANCELLED
    events.emit(state, events.INVOICE_CANCELLED, invoice=invoice.address)
    return state
