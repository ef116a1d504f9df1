"""User profile specs."""

from __future__ import annotations

from .. import events
from ..addresses import profile_address
from ..config import MAX_BUSINESS_NAME_LEN, MAX_EMAIL_LEN, MAX_NAME_LEN
from ..errors import ErrorCode, SpecError
from ..types import Instruction, InstructionType, LedgerState, UserProfile
from .common import byte_len, payload_str


def verify(state: LedgerState, ix: Instruction) -> None:
    if ix.ix_type != InstructionType.CREATE_PROFILE:
        raise SpecError(ErrorCode.INVALID_TYPE, f"unsupported profile instruction: {ix.ix_type}")
    p = ix.payload

    if byte_len(payload_str(p, "name")) > MAX_NAME_LEN:
        raise SpecError(ErrorCode.NAME_TOO_LONG, "name too long (max 64 chars)")
    if byte_len(payload_str(p, "email")) > MAX_EMAIL_LEN:
        raise SpecError(ErrorCode.EMAIL_TOO_LONG, "email too long (max 128 chars)")
    business_name = p.get("business_name")
    if business_name is not None:
        if not isinstance(business_name, str) or byte_len(business_name) > MAX_BUSINESS_NAME_LEN:
            raise SpecError(ErrorCode.INVALID_PAYLOAD, "invalid business_name")

    if profile_address(ix.signer) in state.profiles:
        raise SpecError(ErrorCode.ACCOUNT_EXISTS, "profile already exists")


def apply(state: LedgerState, ix: Instruction) -> LedgerState:
    p = ix.payload
    state.profiles[profile_address(ix.signer)] = UserProfile(
        owner=ix.signer,
        name=p["name"],
        email=p["email"],
        business_name=p.get("business_name") or "",
    )
    events.emit(state, events.PROFILE_CREATED, owner=ix.signer, name=p["name"])
    return state
