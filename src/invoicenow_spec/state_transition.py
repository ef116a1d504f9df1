"""State transition entrypoints for the invoice settlement specs."""

from __future__ import annotations

import logging
from copy import deepcopy
from typing import Optional

from .errors import ErrorCode, SpecError
from .types import Instruction, InstructionType, LedgerState
from .ix import escrow as ix_escrow
from .ix import invoice as ix_invoice
from .ix import lottery as ix_lottery
from .ix import profile as ix_profile

logger = logging.getLogger(__name__)

_INVOICE_TYPES = frozenset({
    InstructionType.CREATE_INVOICE,
    InstructionType.MARK_PAID,
    InstructionType.CANCEL_INVOICE,
})

_ESCROW_TYPES = frozenset({
    InstructionType.FUND_ESCROW,
    InstructionType.RELEASE_MILESTONE,
})

_LOTTERY_TYPES = frozenset({
    InstructionType.INITIALIZE_LOTTERY_POOL,
    InstructionType.SEED_LOTTERY_POOL,
    InstructionType.TOGGLE_LOTTERY_POOL,
    InstructionType.PAY_WITH_LOTTERY,
    InstructionType.SETTLE_LOTTERY,
})

_PROFILE_TYPES = frozenset({
    InstructionType.CREATE_PROFILE,
})

SIGNER_LEN = 32


class TransitionResult:
    """Thin wrapper for verify/apply results."""

    def __init__(self, ok: bool, error: Optional[SpecError] = None):
        self.ok = ok
        self.error = error

    @classmethod
    def success(cls) -> "TransitionResult":
        return cls(True, None)

    @classmethod
    def failure(cls, error: SpecError) -> "TransitionResult":
        return cls(False, error)

    def __repr__(self) -> str:
        if self.ok:
            return "TransitionResult(ok)"
        return f"TransitionResult(error={self.error})"


def _dispatch_verify(state: LedgerState, ix: Instruction) -> None:
    tt = ix.ix_type
    if tt in _INVOICE_TYPES:
        return ix_invoice.verify(state, ix)
    if tt in _ESCROW_TYPES:
        return ix_escrow.verify(state, ix)
    if tt in _LOTTERY_TYPES:
        return ix_lottery.verify(state, ix)
    if tt in _PROFILE_TYPES:
        return ix_profile.verify(state, ix)

    raise SpecError(ErrorCode.NOT_IMPLEMENTED, f"verify not implemented for {ix.ix_type}")


def _dispatch_apply(state: LedgerState, ix: Instruction) -> LedgerState:
    tt = ix.ix_type
    if tt in _INVOICE_TYPES:
        return ix_invoice.apply(state, ix)
    if tt in _ESCROW_TYPES:
        return ix_escrow.apply(state, ix)
    if tt in _LOTTERY_TYPES:
        return ix_lottery.apply(state, ix)
    if tt in _PROFILE_TYPES:
        return ix_profile.apply(state, ix)

    raise SpecError(ErrorCode.NOT_IMPLEMENTED, f"apply not implemented for {ix.ix_type}")


def _verify_common(state: LedgerState, ix: Instruction) -> None:
    if not isinstance(ix.ix_type, InstructionType):
        raise SpecError(ErrorCode.INVALID_TYPE, "unknown instruction type")
    if not isinstance(ix.signer, bytes) or len(ix.signer) != SIGNER_LEN:
        raise SpecError(ErrorCode.INVALID_FORMAT, "signer must be 32 bytes")
    if not isinstance(ix.payload, dict):
        raise SpecError(ErrorCode.INVALID_PAYLOAD, "instruction payload must be dict")
    if ix.timestamp is not None:
        if isinstance(ix.timestamp, bool) or not isinstance(ix.timestamp, int):
            raise SpecError(ErrorCode.INVALID_FORMAT, "timestamp must be an integer")
        if ix.timestamp < 0:
            raise SpecError(ErrorCode.INVALID_FORMAT, "timestamp negative")


def verify_ix(state: LedgerState, ix: Instruction) -> TransitionResult:
    """Precondition checks for a single instruction against `state`."""
    try:
        _verify_common(state, ix)
        _dispatch_verify(state, ix)
        return TransitionResult.success()
    except SpecError as exc:
        return TransitionResult.failure(exc)


def apply_ix(state: LedgerState, ix: Instruction) -> tuple[LedgerState, TransitionResult]:
    """Apply an instruction after verification.

    Failed-instruction semantics:
    - Precondition failure: state unchanged, nothing transferred
    - Execution failure (transfer or arithmetic): working copy discarded,
      state unchanged
    """
    try:
        _verify_common(state, ix)
        _dispatch_verify(state, ix)
    except SpecError as exc:
        logger.debug("rejected %s: %s", ix.ix_type, exc)
        return state, TransitionResult.failure(exc)

    working = deepcopy(state)
    if ix.timestamp is not None and ix.timestamp > working.timestamp:
        working.timestamp = ix.timestamp

    try:
        working = _dispatch_apply(working, ix)
    except SpecError as exc:
        logger.debug("aborted %s: %s", ix.ix_type, exc)
        return state, TransitionResult.failure(exc)

    logger.debug("applied %s", ix.ix_type)
    return working, TransitionResult.success()


def apply_batch(
    state: LedgerState, ixs: list[Instruction]
) -> tuple[LedgerState, TransitionResult]:
    """Apply instructions in order with all-or-nothing semantics.

    If any instruction fails, the whole batch is rejected and the state is
    unchanged.
    """
    working = state
    for ix in ixs:
        working, result = apply_ix(working, ix)
        if not result.ok:
            return state, result
    return working, TransitionResult.success()
