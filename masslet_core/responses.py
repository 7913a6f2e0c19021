"""
Parsers for the loosely-shaped JSON-RPC results returned by Massa nodes.

Node versions disagree on where they put things: the current period may
sit under ``last_slot.period``, be derivable from cycle counters, or be a
flat ``period``; balances come back either as decimal MAS strings or as
integer nano strings.  Each parser below enumerates the shapes it accepts
and tags which one it used, so callers never probe raw dicts.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any

from masslet_core.errors import StatusUnavailableError
from masslet_core.precision import MAX_MAS, U64_MAX, format_mas, nano_to_mas


# ═══════════════════════════════════════════════════════════════════
#  get_status
# ═══════════════════════════════════════════════════════════════════

class PeriodSource(enum.Enum):
    LAST_SLOT = "last_slot.period"
    CYCLE = "current_cycle*periods_per_cycle"
    FLAT = "period"


@dataclass(frozen=True)
class NetworkStatus:
    current_period: int
    period_source: PeriodSource
    connected_peers: int
    version: str | None


def _as_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value)
    return None


def extract_period(status: dict) -> tuple[int, PeriodSource] | None:
    """Current period, tried in order: ``last_slot.period``, cycle-derived,
    flat ``period``.  A period of 0 is a real value."""
    last_slot = status.get("last_slot")
    if isinstance(last_slot, dict):
        period = _as_int(last_slot.get("period"))
        if period is not None:
            return period, PeriodSource.LAST_SLOT

    cycle = _as_int(status.get("current_cycle"))
    per_cycle = _as_int(status.get("periods_per_cycle"))
    if cycle is not None and per_cycle:
        offset = _as_int(status.get("cycle_duration")) or 0
        return cycle * per_cycle + offset, PeriodSource.CYCLE

    period = _as_int(status.get("period"))
    if period is not None:
        return period, PeriodSource.FLAT
    return None


def count_peers(connected: Any) -> int:
    """``connected_nodes`` is a count, a node-id map, or a list."""
    if isinstance(connected, bool):
        return 0
    if isinstance(connected, int):
        return max(connected, 0)
    if isinstance(connected, (dict, list)):
        return len(connected)
    return 0


def parse_status(raw: Any) -> NetworkStatus:
    """Parse a ``get_status`` result; no usable period is fatal."""
    if not isinstance(raw, dict):
        raise StatusUnavailableError("get_status returned no status object")
    found = extract_period(raw)
    if found is None:
        raise StatusUnavailableError(
            "get_status carries no current period",
            {"keys": sorted(raw.keys())},
        )
    period, source = found
    version = raw.get("version")
    return NetworkStatus(
        current_period=period,
        period_source=source,
        connected_peers=count_peers(raw.get("connected_nodes")),
        version=str(version) if version is not None else None,
    )


# ═══════════════════════════════════════════════════════════════════
#  Balances
# ═══════════════════════════════════════════════════════════════════

class BalanceKind(enum.Enum):
    DECIMAL = "decimal"  # already in MAS, e.g. "1.999"
    NANO = "nano"        # integer nano-units, e.g. "1999000000"


@dataclass(frozen=True)
class BalanceValue:
    kind: BalanceKind
    raw: str

    def to_mas(self) -> Decimal:
        if self.kind is BalanceKind.DECIMAL:
            return Decimal(self.raw)
        return nano_to_mas(self.raw)

    def format(self) -> str:
        return format_mas(self.to_mas())

    @property
    def is_zero(self) -> bool:
        return self.to_mas() == 0


def parse_balance_value(value: Any) -> BalanceValue | None:
    """Classify one balance field; ``None`` when absent, unreadable or
    beyond the 64-bit nano range."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return BalanceValue(BalanceKind.NANO, str(value)) if 0 <= value <= U64_MAX else None
    if isinstance(value, float):
        # Numbers are nano counts; a float one is only accepted when integral.
        if not value.is_integer() or not 0 <= value <= U64_MAX:
            return None
        return BalanceValue(BalanceKind.NANO, str(int(value)))
    if not isinstance(value, str):
        return None
    text = value.strip()
    if "." in text:
        try:
            dec = Decimal(text)
        except InvalidOperation:
            return None
        if not dec.is_finite() or dec < 0 or dec > MAX_MAS:
            return None
        return BalanceValue(BalanceKind.DECIMAL, text)
    if text.isdigit() and int(text) <= U64_MAX:
        return BalanceValue(BalanceKind.NANO, text)
    return None


def parse_address_balance(info: Any) -> BalanceValue | None:
    """``candidate_balance`` wins over ``final_balance``."""
    if not isinstance(info, dict):
        return None
    for key in ("candidate_balance", "final_balance"):
        parsed = parse_balance_value(info.get(key))
        if parsed is not None:
            return parsed
    return None


def first_address_info(result: Any) -> dict | None:
    """``get_addresses`` answers with a list; we only ever ask for one."""
    if isinstance(result, list) and result and isinstance(result[0], dict):
        return result[0]
    return None


# ═══════════════════════════════════════════════════════════════════
#  Operations / history
# ═══════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class TransferRecord:
    id: str | None
    from_address: str
    to_address: str
    amount: str
    timestamp: str
    status: str  # "success" | "pending"

    def direction(self, owner: str) -> str:
        return "sent" if self.from_address == owner else "received"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "from": self.from_address,
            "to": self.to_address,
            "amount": self.amount,
            "timestamp": self.timestamp,
            "status": self.status,
        }


def extract_operation_ids(info: Any) -> list[str]:
    """Operation ids attached to address metadata (list or id-keyed map)."""
    if not isinstance(info, dict):
        return []
    ops = info.get("operations")
    if isinstance(ops, list):
        return [str(o) for o in ops if isinstance(o, (str, int))]
    if isinstance(ops, dict):
        return [str(k) for k in ops]
    return []


def _transaction_body(content: dict) -> dict:
    inner = content.get("op")
    if isinstance(inner, dict) and isinstance(inner.get("transaction"), dict):
        return inner["transaction"]
    if isinstance(content.get("transaction"), dict):
        return content["transaction"]
    return {}


def _unwrap(wrapper: dict) -> tuple[dict, dict]:
    op = wrapper.get("operation")
    if not isinstance(op, dict):
        op = wrapper
    content = op.get("content")
    if not isinstance(content, dict):
        content = op
    return op, content


def _creator(op: dict, content: dict) -> str | None:
    return content.get("content_creator_address") or op.get("content_creator_address")


def operation_parties(wrapper: dict) -> tuple[str | None, str | None]:
    """``(creator, recipient)`` addresses of a wrapped operation."""
    op, content = _unwrap(wrapper)
    body = _transaction_body(content)
    return _creator(op, content), body.get("recipient_address")


def format_timestamp(ms: Any = None) -> str:
    """ISO-8601 UTC from a millisecond epoch; now when absent."""
    if isinstance(ms, (int, float)) and not isinstance(ms, bool):
        return datetime.fromtimestamp(ms / 1000, tz=timezone.utc).isoformat()
    return datetime.now(tz=timezone.utc).isoformat()


def parse_operation(wrapper: Any, timestamp: str, is_final: bool | None = None) -> TransferRecord | None:
    """Normalise one ``get_operations`` / block entry into a transfer.

    ``is_final`` overrides the wrapper's own ``is_operation_final`` flag
    (blocks report finality for all their operations at once).
    """
    if not isinstance(wrapper, dict):
        return None
    op, content = _unwrap(wrapper)
    body = _transaction_body(content)
    amount = parse_balance_value(body.get("amount"))
    final = wrapper.get("is_operation_final") if is_final is None else is_final
    op_id = wrapper.get("id") or op.get("id")
    return TransferRecord(
        id=str(op_id) if op_id is not None else None,
        from_address=_creator(op, content) or "Unknown",
        to_address=body.get("recipient_address") or "Unknown",
        amount=amount.format() if amount is not None else "0",
        timestamp=timestamp,
        status="success" if final else "pending",
    )
