"""Invoice settlement error codes and exceptions."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum


class ErrorCategory(IntEnum):
    SUCCESS = 0x00
    VALIDATION = 0x01
    AUTHORIZATION = 0x02
    RESOURCE = 0x03
    STATE = 0x04
    INTERNAL = 0xFF


class ErrorCode(IntEnum):
    # Success
    SUCCESS = 0x0000

    # Validation
    INVALID_FORMAT = 0x0100
    INVALID_TYPE = 0x0102
    INVALID_AMOUNT = 0x0105
    INVALID_PAYLOAD = 0x0107
    INVOICE_ID_TOO_LONG = 0x0120
    MEMO_TOO_LONG = 0x0121
    TOO_MANY_MILESTONES = 0x0122
    TX_REFERENCE_TOO_LONG = 0x0123
    NAME_TOO_LONG = 0x0124
    EMAIL_TOO_LONG = 0x0125
    HOUSE_EDGE_TOO_HIGH = 0x0130
    RESERVE_TOO_HIGH = 0x0131
    MAX_WIN_TOO_HIGH = 0x0132
    INVALID_RANDOM_VALUE = 0x0133

    # Authorization
    UNAUTHORIZED = 0x0200

    # Resource
    INSUFFICIENT_BALANCE = 0x0300
    INSUFFICIENT_FUNDING = 0x0306
    OVERFLOW = 0x0304
    INVOICE_EXCEEDS_MAX_WIN = 0x0307

    # State
    ACCOUNT_NOT_FOUND = 0x0400
    ACCOUNT_EXISTS = 0x0401
    ESCROW_NOT_FOUND = 0x0402
    ESCROW_NOT_FUNDED = 0x0403
    INVOICE_NOT_FOUND = 0x0410
    INVALID_INVOICE_STATUS = 0x0411
    NO_MILESTONES = 0x0412
    ALL_MILESTONES_COMPLETE = 0x0413
    POOL_NOT_FOUND = 0x0420
    POOL_PAUSED = 0x0421
    INVOICE_TOO_NEW = 0x0422
    ENTRY_NOT_FOUND = 0x0423
    LOTTERY_ALREADY_SETTLED = 0x0424

    # Internal
    INTERNAL_ERROR = 0xFF00
    NOT_IMPLEMENTED = 0xFF01
    UNKNOWN = 0xFFFF

    @property
    def category(self) -> ErrorCategory:
        return ErrorCategory(self.value >> 8)


@dataclass(frozen=True)
class SpecError(Exception):
    code: ErrorCode
    message: str

    def __str__(self) -> str:
        return f"{self.code.name}({self.code:#06x}): {self.message}"


# Allow Python's Exception machinery to set __traceback__/__context__/__cause__
# while keeping dataclass fields frozen (Python 3.13 contextlib compat).
_EXCEPTION_ATTRS = frozenset(("__traceback__", "__context__", "__cause__"))
_frozen_setattr = SpecError.__setattr__


def _spec_error_setattr(self: SpecError, name: str, value: object) -> None:
    if name in _EXCEPTION_ATTRS:
        object.__setattr__(self, name, value)
    else:
        _frozen_setattr(self, name, value)


SpecError.__setattr__ = _spec_error_setattr  # type: ignore[method-assign]
