"""Core types for the invoice settlement specs.

Records mirror the accounts of the invoice program: invoices with optional
milestone escrow, per-asset lottery pools, and per-(invoice, participant)
lottery entries. Token balances are tracked in `LedgerState.accounts`, keyed
by (owner, asset); the holding vaults of escrows and pools are the token
accounts owned by the escrow or pool record address.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class InstructionType(Enum):
    CREATE_INVOICE = "create_invoice"
    FUND_ESCROW = "fund_escrow"
    RELEASE_MILESTONE = "release_milestone"
    MARK_PAID = "mark_paid"
    CANCEL_INVOICE = "cancel_invoice"
    CREATE_PROFILE = "create_profile"
    INITIALIZE_LOTTERY_POOL = "initialize_lottery_pool"
    SEED_LOTTERY_POOL = "seed_lottery_pool"
    TOGGLE_LOTTERY_POOL = "toggle_lottery_pool"
    PAY_WITH_LOTTERY = "pay_with_lottery"
    SETTLE_LOTTERY = "settle_lottery"


class InvoiceStatus(Enum):
    PENDING = "pending"
    ESCROW_FUNDED = "escrow_funded"
    PAID = "paid"
    CANCELLED = "cancelled"
    # Reserved: no instruction transitions into this state yet.
    DISPUTED = "disputed"


class LotteryStatus(Enum):
    PENDING_SETTLEMENT = "pending_settlement"
    WON = "won"
    LOST = "lost"


@dataclass
class Instruction:
    ix_type: InstructionType
    signer: bytes
    payload: Dict[str, Any] = field(default_factory=dict)
    # Unix seconds; falls back to LedgerState.timestamp when None.
    timestamp: Optional[int] = None


# --- Ledger ---


@dataclass
class TokenAccount:
    owner: bytes
    asset: bytes
    balance: int = 0


# --- Invoice ---


@dataclass
class Milestone:
    description: str
    amount: int
    completed: bool = False
    completed_at: int = 0


@dataclass
class Invoice:
    address: bytes
    creator: bytes
    invoice_id: str
    amount: int
    asset: bytes
    due_date: int
    memo: str = ""
    client: Optional[bytes] = None
    status: InvoiceStatus = InvoiceStatus.PENDING
    created_at: int = 0
    paid_at: int = 0
    milestones: List[Milestone] = field(default_factory=list)
    current_milestone: int = 0
    escrow_funded: bool = False


@dataclass
class Escrow:
    address: bytes
    invoice_id: str
    invoice: bytes
    asset: bytes


@dataclass
class UserProfile:
    owner: bytes
    name: str
    email: str
    business_name: str = ""
    total_invoices: int = 0
    total_received: int = 0


# --- Lottery ---


@dataclass
class LotteryPool:
    address: bytes
    authority: bytes
    asset: bytes
    house_edge_bps: int
    min_pool_reserve_bps: int
    max_win_pct_bps: int
    total_balance: int = 0
    total_premiums_collected: int = 0
    total_payouts: int = 0
    total_entries: int = 0
    total_wins: int = 0
    paused: bool = False


@dataclass
class LotteryEntry:
    address: bytes
    invoice: bytes
    participant: bytes
    pool: bytes
    invoice_amount: int
    premium_paid: int
    win_probability_bps: int
    status: LotteryStatus = LotteryStatus.PENDING_SETTLEMENT
    random_result: Optional[bytes] = None
    created_at: int = 0
    resolved_at: int = 0


@dataclass
class Event:
    name: str
    fields: Dict[str, Any] = field(default_factory=dict)


# --- LedgerState ---


@dataclass
class LedgerState:
    accounts: Dict[Tuple[bytes, bytes], TokenAccount] = field(default_factory=dict)
    invoices: Dict[bytes, Invoice] = field(default_factory=dict)
    escrows: Dict[bytes, Escrow] = field(default_factory=dict)
    profiles: Dict[bytes, UserProfile] = field(default_factory=dict)
    pools: Dict[bytes, LotteryPool] = field(default_factory=dict)
    entries: Dict[bytes, LotteryEntry] = field(default_factory=dict)
    # Notifications for external observers. Not part of the state digest.
    events: List[Event] = field(default_factory=list)
    timestamp: int = 0
