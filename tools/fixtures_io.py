"""Helpers to serialize/deserialize fixtures for the invoice settlement specs."""

from __future__ import annotations

from typing import Any, Optional

from invoicenow_spec.types import (
    Escrow,
    Event,
    Instruction,
    InstructionType,
    Invoice,
    InvoiceStatus,
    LedgerState,
    LotteryEntry,
    LotteryPool,
    LotteryStatus,
    Milestone,
    TokenAccount,
    UserProfile,
)

# Payload keys that carry raw bytes and round-trip through hex.
_BYTES_KEYS = frozenset({"asset", "invoice", "entry", "random_value"})


def _hex_to_bytes(v: str) -> bytes:
    return bytes.fromhex(v)


def _bytes_to_hex(v: bytes) -> str:
    return v.hex()


def _opt_hex(v: Optional[bytes]) -> Optional[str]:
    return _bytes_to_hex(v) if v is not None else None


def _opt_bytes(v: Optional[str]) -> Optional[bytes]:
    return _hex_to_bytes(v) if v is not None else None


def _value_to_json(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        return _bytes_to_hex(bytes(value))
    if isinstance(value, dict):
        return {k: _value_to_json(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_value_to_json(v) for v in value]
    if isinstance(value, Milestone):
        return {"description": value.description, "amount": value.amount}
    return value


def state_to_json(state: LedgerState) -> dict[str, Any]:
    result: dict[str, Any] = {
        "timestamp": state.timestamp,
        "accounts": [
            {
                "owner": _bytes_to_hex(a.owner),
                "asset": _bytes_to_hex(a.asset),
                "balance": a.balance,
            }
            for a in state.accounts.values()
        ],
        "invoices": [
            {
                "address": _bytes_to_hex(i.address),
                "creator": _bytes_to_hex(i.creator),
                "invoice_id": i.invoice_id,
                "amount": i.amount,
                "asset": _bytes_to_hex(i.asset),
                "due_date": i.due_date,
                "memo": i.memo,
                "client": _opt_hex(i.client),
                "status": i.status.value,
                "created_at": i.created_at,
                "paid_at": i.paid_at,
                "milestones": [
                    {
                        "description": m.description,
                        "amount": m.amount,
                        "completed": m.completed,
                        "completed_at": m.completed_at,
                    }
                    for m in i.milestones
                ],
                "current_milestone": i.current_milestone,
                "escrow_funded": i.escrow_funded,
            }
            for i in state.invoices.values()
        ],
    }

    if state.escrows:
        result["escrows"] = [
            {
                "address": _bytes_to_hex(e.address),
                "invoice_id": e.invoice_id,
                "invoice": _bytes_to_hex(e.invoice),
                "asset": _bytes_to_hex(e.asset),
            }
            for e in state.escrows.values()
        ]

    if state.profiles:
        result["profiles"] = [
            {
                "address": _bytes_to_hex(addr),
                "owner": _bytes_to_hex(p.owner),
                "name": p.name,
                "email": p.email,
                "business_name": p.business_name,
                "total_invoices": p.total_invoices,
                "total_received": p.total_received,
            }
            for addr, p in state.profiles.items()
        ]

    if state.pools:
        result["pools"] = [
            {
                "address": _bytes_to_hex(p.address),
                "authority": _bytes_to_hex(p.authority),
                "asset": _bytes_to_hex(p.asset),
                "house_edge_bps": p.house_edge_bps,
                "min_pool_reserve_bps": p.min_pool_reserve_bps,
                "max_win_pct_bps": p.max_win_pct_bps,
                "total_balance": p.total_balance,
                "total_premiums_collected": p.total_premiums_collected,
                "total_payouts": p.total_payouts,
                "total_entries": p.total_entries,
                "total_wins": p.total_wins,
                "paused": p.paused,
            }
            for p in state.pools.values()
        ]

    if state.entries:
        result["entries"] = [
            {
                "address": _bytes_to_hex(e.address),
                "invoice": _bytes_to_hex(e.invoice),
                "participant": _bytes_to_hex(e.participant),
                "pool": _bytes_to_hex(e.pool),
                "invoice_amount": e.invoice_amount,
                "premium_paid": e.premium_paid,
                "win_probability_bps": e.win_probability_bps,
                "status": e.status.value,
                "random_result": _opt_hex(e.random_result),
                "created_at": e.created_at,
                "resolved_at": e.resolved_at,
            }
            for e in state.entries.values()
        ]

    if state.events:
        result["events"] = [
            {"name": ev.name, "fields": _value_to_json(ev.fields)} for ev in state.events
        ]

    return result


def state_from_json(data: dict[str, Any]) -> LedgerState:
    state = LedgerState(timestamp=data.get("timestamp", 0))

    for a in data.get("accounts", []):
        acct = TokenAccount(
            owner=_hex_to_bytes(a["owner"]),
            asset=_hex_to_bytes(a["asset"]),
            balance=a.get("balance", 0),
        )
        state.accounts[(acct.owner, acct.asset)] = acct

    for i in data.get("invoices", []):
        inv = Invoice(
            address=_hex_to_bytes(i["address"]),
            creator=_hex_to_bytes(i["creator"]),
            invoice_id=i["invoice_id"],
            amount=i["amount"],
            asset=_hex_to_bytes(i["asset"]),
            due_date=i.get("due_date", 0),
            memo=i.get("memo", ""),
            client=_opt_bytes(i.get("client")),
            status=InvoiceStatus(i["status"]),
            created_at=i.get("created_at", 0),
            paid_at=i.get("paid_at", 0),
            milestones=[
                Milestone(
                    description=m.get("description", ""),
                    amount=m.get("amount", 0),
                    completed=m.get("completed", False),
                    completed_at=m.get("completed_at", 0),
                )
                for m in i.get("milestones", [])
            ],
            current_milestone=i.get("current_milestone", 0),
            escrow_funded=i.get("escrow_funded", False),
        )
        state.invoices[inv.address] = inv

    for e in data.get("escrows", []):
        esc = Escrow(
            address=_hex_to_bytes(e["address"]),
            invoice_id=e["invoice_id"],
            invoice=_hex_to_bytes(e["invoice"]),
            asset=_hex_to_bytes(e["asset"]),
        )
        state.escrows[esc.address] = esc

    for p in data.get("profiles", []):
        state.profiles[_hex_to_bytes(p["address"])] = UserProfile(
            owner=_hex_to_bytes(p["owner"]),
            name=p["name"],
            email=p["email"],
            business_name=p.get("business_name", ""),
            total_invoices=p.get("total_invoices", 0),
            total_received=p.get("total_received", 0),
        )

    for p in data.get("pools", []):
        pool = LotteryPool(
            address=_hex_to_bytes(p["address"]),
            authority=_hex_to_bytes(p["authority"]),
            asset=_hex_to_bytes(p["asset"]),
            house_edge_bps=p["house_edge_bps"],
            min_pool_reserve_bps=p["min_pool_reserve_bps"],
            max_win_pct_bps=p["max_win_pct_bps"],
            total_balance=p.get("total_balance", 0),
            total_premiums_collected=p.get("total_premiums_collected", 0),
            total_payouts=p.get("total_payouts", 0),
            total_entries=p.get("total_entries", 0),
            total_wins=p.get("total_wins", 0),
            paused=p.get("paused", False),
        )
        state.pools[pool.address] = pool

    for e in data.get("entries", []):
        entry = LotteryEntry(
            address=_hex_to_bytes(e["address"]),
            invoice=_hex_to_bytes(e["invoice"]),
            participant=_hex_to_bytes(e["participant"]),
            pool=_hex_to_bytes(e["pool"]),
            invoice_amount=e["invoice_amount"],
            premium_paid=e["premium_paid"],
            win_probability_bps=e["win_probability_bps"],
            status=LotteryStatus(e["status"]),
            random_result=_opt_bytes(e.get("random_result")),
            created_at=e.get("created_at", 0),
            resolved_at=e.get("resolved_at", 0),
        )
        state.entries[entry.address] = entry

    # Event payloads stay hex-encoded; they are notifications only.
    for ev in data.get("events", []):
        state.events.append(Event(name=ev["name"], fields=dict(ev.get("fields", {}))))

    return state


def ix_to_json(ix: Instruction) -> dict[str, Any]:
    return {
        "ix_type": ix.ix_type.value,
        "signer": _bytes_to_hex(ix.signer),
        "payload": _value_to_json(ix.payload),
        "timestamp": ix.timestamp,
    }


def ix_from_json(data: dict[str, Any]) -> Instruction:
    payload: dict[str, Any] = {}
    for k, v in (data.get("payload") or {}).items():
        if k in _BYTES_KEYS and isinstance(v, str):
            payload[k] = _hex_to_bytes(v)
        else:
            payload[k] = v
    return Instruction(
        ix_type=InstructionType(data["ix_type"]),
        signer=_hex_to_bytes(data["signer"]),
        payload=payload,
        timestamp=data.get("timestamp"),
    )
