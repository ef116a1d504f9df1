"""Serialised front end over the pure state transition functions.

`apply_ix` is a pure function of (state, instruction). The engine owns the
current state and commits one instruction at a time under a lock, so every
pool admission check reads the liquidity left by the previously committed
entry and no partially applied instruction is ever observable.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import replace
from typing import Callable, Iterable, List, Optional

from .state_transition import TransitionResult, apply_batch, apply_ix, verify_ix
from .types import Event, Instruction, InstructionType, LedgerState

logger = logging.getLogger(__name__)


def _wall_clock() -> int:
    return int(time.time())


class SettlementEngine:
    def __init__(
        self,
        state: Optional[LedgerState] = None,
        clock: Callable[[], int] = _wall_clock,
    ):
        self._state = state if state is not None else LedgerState()
        self._clock = clock
        self._lock = threading.Lock()
        self._delivered = len(self._state.events)

    @property
    def state(self) -> LedgerState:
        with self._lock:
            return self._state

    def _stamp(self, ix: Instruction) -> Instruction:
        # Callers keep their unstamped instruction for later resubmission.
        if ix.timestamp is None:
            return replace(ix, timestamp=self._clock())
        return ix

    def verify(self, ix: Instruction) -> TransitionResult:
        with self._lock:
            return verify_ix(self._state, self._stamp(ix))

    def submit(self, ix: Instruction) -> TransitionResult:
        """Apply one instruction; on failure the committed state is untouched."""
        with self._lock:
            ix = self._stamp(ix)
            new_state, result = apply_ix(self._state, ix)
            if result.ok:
                self._state = new_state
                if ix.ix_type == InstructionType.SETTLE_LOTTERY:
                    logger.info("lottery settled: %s", new_state.events[-1].name)
            else:
                logger.info(
                    "instruction %s failed (%s): %s",
                    ix.ix_type,
                    result.error.code.category.name,
                    result.error,
                )
            return result

    def submit_batch(self, ixs: Iterable[Instruction]) -> TransitionResult:
        with self._lock:
            stamped = [self._stamp(ix) for ix in ixs]
            new_state, result = apply_batch(self._state, stamped)
            if result.ok:
                self._state = new_state
            else:
                logger.info(
                    "batch of %d failed (%s): %s",
                    len(stamped),
                    result.error.code.category.name,
                    result.error,
                )
            return result

    def drain_events(self) -> List[Event]:
        """Return events committed since the previous drain and drop them from state."""
        with self._lock:
            pending = self._state.events[self._delivered:]
            # Fresh state object so snapshots handed out earlier keep their history.
            self._state = replace(self._state, events=[])
            self._delivered = 0
            return pending
