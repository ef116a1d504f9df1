"""Event records emitted by committed instructions.

Events are notifications for external observers only. They are appended to
the working state, so a failed instruction never leaves one behind.
"""

from __future__ import annotations

from typing import Any

from .types import Event, LedgerState

INVOICE_CREATED = "InvoiceCreated"
ESCROW_FUNDED = "EscrowFunded"
MILESTONE_RELEASED = "MilestoneReleased"
INVOICE_PAID = "InvoicePaid"
INVOICE_CANCELLED = "InvoiceCancelled"
PROFILE_CREATED = "ProfileCreated"
LOTTERY_POOL_CREATED = "LotteryPoolCreated"
LOTTERY_POOL_SEEDED = "LotteryPoolSeeded"
LOTTERY_POOL_TOGGLED = "LotteryPoolToggled"
LOTTERY_ENTRY_CREATED = "LotteryEntryCreated"
LOTTERY_WON = "LotteryWon"
LOTTERY_LOST = "LotteryLost"


def emit(state: LedgerState, name: str, /, **fields: Any) -> Event:
    event = Event(name=name, fields=dict(fields))
    state.events.append(event)
    return event


def events_named(state: LedgerState, name: str) -> list[Event]:
    return [e for e in state.events if e.name == name]
