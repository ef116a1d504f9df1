"""Pay-with-lottery specs (pool setup, entry, settlement).

A participant pays `invoice.amount + premium` into the pool vault and is
assigned a win probability frozen at entry time. Settlement consumes an
externally supplied 32-byte random value:

- win: the pool pays the invoice to the creator *and* refunds the invoice
  amount to the participant;
- lose: the pool pays the invoice to the creator only.

Either way the invoice ends up Paid with the participant as client.
"""

from __future__ import annotations

from .. import events, ledger
from ..addresses import entry_address, pool_address
from ..config import (
    LOTTERY_COOLDOWN_SECONDS,
    MAX_HOUSE_EDGE_BPS,
    MAX_POOL_RESERVE_BPS,
    MAX_WIN_PCT_BPS,
)
from ..errors import ErrorCode, SpecError
from ..lottery_math import (
    checked_add,
    draw_value,
    is_win,
    max_win,
    saturating_sub,
    win_probability_bps,
)
from ..types import (
    Instruction,
    InstructionType,
    InvoiceStatus,
    LedgerState,
    LotteryEntry,
    LotteryPool,
    LotteryStatus,
)
from .common import (
    now,
    payload_asset,
    payload_bytes,
    payload_u64,
    require_entry,
    require_invoice,
    require_pool,
)


def pool_max_win(pool: LotteryPool) -> int:
    return max_win(pool.total_balance, pool.min_pool_reserve_bps, pool.max_win_pct_bps)


def verify(state: LedgerState, ix: Instruction) -> None:
    p = ix.payload
    tt = ix.ix_type
    if tt == InstructionType.INITIALIZE_LOTTERY_POOL:
        _verify_initialize(state, ix, p)
    elif tt == InstructionType.SEED_LOTTERY_POOL:
        _verify_seed(state, ix, p)
    elif tt == InstructionType.TOGGLE_LOTTERY_POOL:
        _verify_toggle(state, ix, p)
    elif tt == InstructionType.PAY_WITH_LOTTERY:
        _verify_pay(state, ix, p)
    elif tt == InstructionType.SETTLE_LOTTERY:
        _verify_settle(state, ix, p)
    else:
        raise SpecError(ErrorCode.INVALID_TYPE, f"unsupported lottery instruction: {tt}")


def apply(state: LedgerState, ix: Instruction) -> LedgerState:
    p = ix.payload
    tt = ix.ix_type
    if tt == InstructionType.INITIALIZE_LOTTERY_POOL:
        return _apply_initialize(state, ix, p)
    elif tt == InstructionType.SEED_LOTTERY_POOL:
        return _apply_seed(state, ix, p)
    elif tt == InstructionType.TOGGLE_LOTTERY_POOL:
        return _apply_toggle(state, ix, p)
    elif tt == InstructionType.PAY_WITH_LOTTERY:
        return _apply_pay(state, ix, p)
    elif tt == InstructionType.SETTLE_LOTTERY:
        return _apply_settle(state, ix, p)
    raise SpecError(ErrorCode.INVALID_TYPE, f"unsupported lottery instruction: {tt}")


# --- INITIALIZE_LOTTERY_POOL ---

def _verify_initialize(state: LedgerState, ix: Instruction, p: dict) -> None:
    asset = payload_asset(p)
    if payload_u64(p, "house_edge_bps") > MAX_HOUSE_EDGE_BPS:
        raise SpecError(ErrorCode.HOUSE_EDGE_TOO_HIGH, "house edge too high (max 10%)")
    if payload_u64(p, "min_pool_reserve_bps") > MAX_POOL_RESERVE_BPS:
        raise SpecError(ErrorCode.RESERVE_TOO_HIGH, "reserve percentage too high")
    if payload_u64(p, "max_win_pct_bps") > MAX_WIN_PCT_BPS:
        raise SpecError(ErrorCode.MAX_WIN_TOO_HIGH, "max win percentage too high")

    if pool_address(asset) in state.pools:
        raise SpecError(ErrorCode.ACCOUNT_EXISTS, "lottery pool already exists")


def _apply_initialize(state: LedgerState, ix: Instruction, p: dict) -> LedgerState:
    asset = payload_bytes(p, "asset")
    address = pool_address(asset)
    pool = LotteryPool(
        address=address,
        authority=ix.signer,
        asset=asset,
        house_edge_bps=p["house_edge_bps"],
        min_pool_reserve_bps=p["min_pool_reserve_bps"],
        max_win_pct_bps=p["max_win_pct_bps"],
    )
    state.pools[address] = pool
    # Open the (empty) pool vault.
    ledger.credit(state, address, asset, 0)

    events.emit(
        state,
        events.LOTTERY_POOL_CREATED,
        pool=address,
        asset=asset,
        house_edge_bps=pool.house_edge_bps,
    )
    return state


# --- SEED_LOTTERY_POOL ---

def _verify_seed(state: LedgerState, ix: Instruction, p: dict) -> None:
    pool = require_pool(state, payload_bytes(p, "asset"))
    amount = payload_u64(p, "amount")
    if pool.paused:
        raise SpecError(ErrorCode.POOL_PAUSED, "lottery pool is paused")
    if amount == 0:
        raise SpecError(ErrorCode.INVALID_AMOUNT, "seed amount must be > 0")


def _apply_seed(state: LedgerState, ix: Instruction, p: dict) -> LedgerState:
    pool = state.pools[pool_address(payload_bytes(p, "asset"))]
    amount = p["amount"]

    ledger.transfer(state, ix.signer, pool.address, pool.asset, amount, authorizer=ix.signer)
    pool.total_balance = checked_add(pool.total_balance, amount)

    events.emit(
        state,
        events.LOTTERY_POOL_SEEDED,
        pool=pool.address,
        amount=amount,
        new_balance=pool.total_balance,
    )
    return state


# --- TOGGLE_LOTTERY_POOL ---

def _verify_toggle(state: LedgerState, ix: Instruction, p: dict) -> None:
    pool = require_pool(state, payload_bytes(p, "asset"))
    if ix.signer != pool.authority:
        raise SpecError(ErrorCode.UNAUTHORIZED, "only the pool authority may toggle")


def _apply_toggle(state: LedgerState, ix: Instruction, p: dict) -> LedgerState:
    pool = state.pools[pool_address(payload_bytes(p, "asset"))]
    pool.paused = not pool.paused
    events.emit(state, events.LOTTERY_POOL_TOGGLED, pool=pool.address, paused=pool.paused)
    return state


# --- PAY_WITH_LOTTERY ---

def _verify_pay(state: LedgerState, ix: Instruction, p: dict) -> None:
    pool = require_pool(state, payload_bytes(p, "asset"))
    invoice = require_invoice(state, payload_bytes(p, "invoice"))
    premium = payload_u64(p, "premium")

    if invoice.asset != pool.asset:
        raise SpecError(ErrorCode.INVALID_PAYLOAD, "invoice asset does not match pool")
    if entry_address(invoice.address, ix.signer) in state.entries:
        raise SpecError(ErrorCode.ACCOUNT_EXISTS, "lottery entry already exists")

    if pool.paused:
        raise SpecError(ErrorCode.POOL_PAUSED, "lottery pool is paused")
    if invoice.status != InvoiceStatus.PENDING:
        raise SpecError(ErrorCode.INVALID_INVOICE_STATUS, "invoice not pending")
    if premium == 0:
        raise SpecError(ErrorCode.INVALID_AMOUNT, "premium must be > 0")
    if now(state, ix) - invoice.created_at < LOTTERY_COOLDOWN_SECONDS:
        raise SpecError(ErrorCode.INVOICE_TOO_NEW, "invoice is too new for lottery")

    # Admission is judged against the pool balance of this same state snapshot.
    if invoice.amount > pool_max_win(pool):
        raise SpecError(ErrorCode.INVOICE_EXCEEDS_MAX_WIN, "invoice amount exceeds max win")


def _apply_pay(state: LedgerState, ix: Instruction, p: dict) -> LedgerState:
    pool = state.pools[pool_address(payload_bytes(p, "asset"))]
    invoice = state.invoices[payload_bytes(p, "invoice")]
    premium = p["premium"]
    created_at = now(state, ix)

    probability = win_probability_bps(invoice.amount, premium, pool.house_edge_bps)

    # Principal and premium travel in a single transfer.
    total_payment = checked_add(invoice.amount, premium)
    ledger.transfer(state, ix.signer, pool.address, pool.asset, total_payment, authorizer=ix.signer)

    # Only the premium counts as pool liquidity; principal is held for settlement.
    pool.total_balance = checked_add(pool.total_balance, premium)
    pool.total_premiums_collected = checked_add(pool.total_premiums_collected, premium)
    pool.total_entries = checked_add(pool.total_entries, 1)

    address = entry_address(invoice.address, ix.signer)
    state.entries[address] = LotteryEntry(
        address=address,
        invoice=invoice.address,
        participant=ix.signer,
        pool=pool.address,
        invoice_amount=invoice.amount,
        premium_paid=premium,
        win_probability_bps=probability,
        status=LotteryStatus.PENDING_SETTLEMENT,
        random_result=None,
        created_at=created_at,
        resolved_at=0,
    )

    events.emit(
        state,
        events.LOTTERY_ENTRY_CREATED,
        entry=address,
        invoice=invoice.address,
        participant=ix.signer,
        invoice_amount=invoice.amount,
        premium=premium,
        win_probability_bps=probability,
    )
    return state


# --- SETTLE_LOTTERY ---

def _verify_settle(state: LedgerState, ix: Instruction, p: dict) -> None:
    entry = require_entry(state, payload_bytes(p, "entry"))
    if entry.status != LotteryStatus.PENDING_SETTLEMENT:
        raise SpecError(ErrorCode.LOTTERY_ALREADY_SETTLED, "lottery entry already settled")

    draw_value(payload_bytes(p, "random_value"))

    require_invoice(state, entry.invoice)
    if entry.pool not in state.pools:
        raise SpecError(ErrorCode.POOL_NOT_FOUND, "lottery pool not found")


def _apply_settle(state: LedgerState, ix: Instruction, p: dict) -> LedgerState:
    entry = state.entries[payload_bytes(p, "entry")]
    invoice = state.invoices[entry.invoice]
    pool = state.pools[entry.pool]
    random_value = payload_bytes(p, "random_value")
    resolved_at = now(state, ix)

    won = is_win(draw_value(random_value), entry.win_probability_bps)

    entry.random_result = random_value
    entry.resolved_at = resolved_at

    if won:
        entry.status = LotteryStatus.WON
        pool.total_wins = checked_add(pool.total_wins, 1)
        pool.total_payouts = checked_add(pool.total_payouts, entry.invoice_amount)

        # Both legs are signed by the pool itself, never by a live party.
        ledger.transfer(
            state, pool.address, entry.participant, pool.asset,
            entry.invoice_amount, authorizer=pool.address,
        )
        ledger.transfer(
            state, pool.address, invoice.creator, pool.asset,
            entry.invoice_amount, authorizer=pool.address,
        )
        pool.total_balance = saturating_sub(pool.total_balance, entry.invoice_amount)

        events.emit(
            state,
            events.LOTTERY_WON,
            entry=entry.address,
            invoice=invoice.address,
            participant=entry.participant,
            amount=entry.invoice_amount,
        )
    else:
        entry.status = LotteryStatus.LOST
        ledger.transfer(
            state, pool.address, invoice.creator, pool.asset,
            entry.invoice_amount, authorizer=pool.address,
        )

        events.emit(
            state,
            events.LOTTERY_LOST,
            entry=entry.address,
            invoice=invoice.address,
            participant=entry.participant,
        )

    # Status is not re-checked here: an invoice cancelled, paid or escrowed
    # after entry is still overwritten to Paid.
    invoice.status = InvoiceStatus.PAID
    invoice.paid_at = resolved_at
    invoice.client = entry.participant
    return state
