"""
Precision constants and helpers for MAS amounts.

The ledger counts value in nano-units:

    1 MAS = 1,000,000,000 nano (smallest indivisible unit)

Operations carry unsigned 64-bit nano amounts.  Balances are shown to
6 decimal places (``:.6f``).
"""

from __future__ import annotations

from decimal import (
    ROUND_DOWN,
    ROUND_HALF_UP,
    Decimal,
    DecimalException,
    InvalidOperation,
    localcontext,
)

from masslet_core.errors import InvalidAmountError

# Number of decimal places of the native unit.
MAS_DECIMALS: int = 9

# 1 MAS in nano-units.
NANO_PER_MAS: int = 10 ** MAS_DECIMALS  # 1_000_000_000

# Decimal places used when displaying balances.
DISPLAY_DECIMALS: int = 6

U64_MAX: int = 2 ** 64 - 1

# Largest MAS amount whose nano count still fits a u64.
MAX_MAS: Decimal = Decimal(U64_MAX).scaleb(-MAS_DECIMALS)

_DISPLAY_QUANTUM = Decimal(1).scaleb(-DISPLAY_DECIMALS)  # 0.000001
_NANO_QUANTUM = Decimal(1).scaleb(-MAS_DECIMALS)

# Wide enough for any u64 nano count and its fraction.
_WIDE_PREC = 48


def _to_decimal(value: int | float | str | Decimal) -> Decimal:
    if isinstance(value, bool):
        raise InvalidAmountError(f"Amount must be numeric, got {value!r}")
    try:
        if isinstance(value, float):
            # str() keeps the shortest repr, so 0.29 stays 0.29 and not 0.28999...
            dec = Decimal(str(value))
        else:
            dec = Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidAmountError(f"Amount is not a number: {value!r}") from None
    if not dec.is_finite():
        raise InvalidAmountError(f"Amount must be finite, got {value!r}")
    return dec


def check_u64(value: int, field: str = "amount") -> int:
    """Return *value* if it fits an unsigned 64-bit field."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidAmountError(f"{field} must be an integer, got {value!r}")
    if value < 0:
        raise InvalidAmountError(f"{field} must not be negative, got {value}")
    if value > U64_MAX:
        raise InvalidAmountError(f"{field} exceeds 64 bits: {value}")
    return value


def mas_to_nano(value: int | float | str | Decimal) -> int:
    """Convert a MAS amount to nano-units, truncating sub-nano dust.

    >>> mas_to_nano(0.01)
    10000000
    >>> mas_to_nano("1.5")
    1500000000
    """
    dec = _to_decimal(value)
    if dec < 0:
        raise InvalidAmountError(f"Amount must not be negative, got {value!r}")
    if dec > MAX_MAS:
        raise InvalidAmountError(f"Amount exceeds the 64-bit nano range: {value!r}")
    try:
        with localcontext() as ctx:
            ctx.prec = _WIDE_PREC
            whole = dec.quantize(_NANO_QUANTUM, rounding=ROUND_DOWN)
            nano = int(whole.scaleb(MAS_DECIMALS))
    except DecimalException:
        raise InvalidAmountError(f"Amount cannot be converted to nano: {value!r}") from None
    return check_u64(nano)


def nano_to_mas(nano: int | str) -> Decimal:
    """Convert an integer nano count (or its decimal string) to MAS."""
    if isinstance(nano, str):
        nano = nano.strip()
        if not nano.lstrip("-").isdigit():
            raise InvalidAmountError(f"Not an integer nano amount: {nano!r}")
    return Decimal(int(nano)) / NANO_PER_MAS


def format_mas(value: Decimal | int | float | str) -> str:
    """Return *value* (in MAS) with exactly 6 decimal places.

    >>> format_mas(Decimal("1.999"))
    '1.999000'
    """
    dec = _to_decimal(value)
    try:
        with localcontext() as ctx:
            ctx.prec = _WIDE_PREC
            return str(dec.quantize(_DISPLAY_QUANTUM, rounding=ROUND_HALF_UP))
    except DecimalException:
        raise InvalidAmountError(f"Amount cannot be displayed: {value!r}") from None


def format_compact(value: Decimal | int | float | str) -> str:
    """Short balance label: ``1.50M``, ``2.25K``, otherwise 4 decimals."""
    dec = _to_decimal(value)
    if dec >= 1_000_000:
        return f"{dec / 1_000_000:.2f}M"
    if dec >= 1_000:
        return f"{dec / 1_000:.2f}K"
    return f"{dec:.4f}"
