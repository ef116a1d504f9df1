"""Value-transfer primitive over `LedgerState.accounts`.

A transfer moves `amount` units of one asset between the token accounts of
two owners. It either applies completely or raises `SpecError` before touching
any balance. Callers run it against a working copy of the state, so a failure
in a later transfer of the same instruction discards the earlier ones too.
"""

from __future__ import annotations

from .config import U64_MAX
from .errors import ErrorCode, SpecError
from .types import LedgerState, TokenAccount


def balance_of(state: LedgerState, owner: bytes, asset: bytes) -> int:
    acct = state.accounts.get((owner, asset))
    return acct.balance if acct is not None else 0


def credit(state: LedgerState, owner: bytes, asset: bytes, amount: int) -> TokenAccount:
    """Mint `amount` into an owner's token account (genesis / test funding)."""
    if amount < 0:
        raise SpecError(ErrorCode.INVALID_AMOUNT, "credit amount negative")
    acct = state.accounts.get((owner, asset))
    if acct is None:
        acct = TokenAccount(owner=owner, asset=asset, balance=0)
        state.accounts[(owner, asset)] = acct
    if acct.balance + amount > U64_MAX:
        raise SpecError(ErrorCode.OVERFLOW, "balance overflow")
    acct.balance += amount
    return acct


def transfer(
    state: LedgerState,
    source: bytes,
    destination: bytes,
    asset: bytes,
    amount: int,
    authorizer: bytes,
) -> None:
    if amount < 0 or amount > U64_MAX:
        raise SpecError(ErrorCode.INVALID_AMOUNT, "transfer amount out of range")

    src = state.accounts.get((source, asset))
    if src is None:
        raise SpecError(ErrorCode.ACCOUNT_NOT_FOUND, "source token account not found")
    if authorizer != src.owner:
        raise SpecError(ErrorCode.UNAUTHORIZED, "transfer not authorized by source owner")
    if src.balance < amount:
        raise SpecError(ErrorCode.INSUFFICIENT_BALANCE, "insufficient balance")

    dst = state.accounts.get((destination, asset))
    dst_balance = dst.balance if dst is not None else 0
    if source != destination and dst_balance + amount > U64_MAX:
        raise SpecError(ErrorCode.OVERFLOW, "destination balance overflow")

    src.balance -= amount
    if dst is None:
        dst = TokenAccount(owner=destination, asset=asset, balance=0)
        state.accounts[(destination, asset)] = dst
    dst.balance += amount
