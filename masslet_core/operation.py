"""
Canonical binary layout of a Massa operation.

    varint(fee) || varint(expire_period) || varint(type)
        || recipient_hash (32 bytes) || varint(amount)

Varints are unsigned LEB128: 7 data bits per byte, low group first, high
bit set on every byte except the last.  The recipient is the raw
public-key hash taken from the decoded address, never the address text.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from masslet_core.address import HASH_SIZE, decode_address, hash_to_address
from masslet_core.errors import InvalidAmountError, MalformedOperationError
from masslet_core.precision import check_u64

OP_TYPE_TRANSACTION = 0

# 64 bits need at most ceil(64 / 7) = 10 groups.
MAX_VARINT_LEN = 10


def encode_varint(value: int) -> bytes:
    """Unsigned LEB128 encoding of a u64."""
    value = check_u64(value, "varint")
    out = bytearray()
    while value >= 0x80:
        out.append((value & 0x7F) | 0x80)
        value >>= 7
    out.append(value)
    return bytes(out)


def decode_varint(data: bytes, offset: int = 0) -> tuple[int, int]:
    """Decode one varint at *offset*.  Returns ``(value, next_offset)``."""
    value = 0
    shift = 0
    pos = offset
    while True:
        if pos >= len(data):
            raise MalformedOperationError(f"Truncated varint at offset {offset}")
        if pos - offset >= MAX_VARINT_LEN:
            raise MalformedOperationError(f"Varint at offset {offset} is too long")
        byte = data[pos]
        value |= (byte & 0x7F) << shift
        pos += 1
        if not byte & 0x80:
            break
        shift += 7
    if value > 2 ** 64 - 1:
        raise MalformedOperationError(f"Varint at offset {offset} exceeds 64 bits")
    return value, pos


@dataclass(frozen=True)
class Operation:
    """A transfer operation, amounts in nano-units."""

    fee: int
    expire_period: int
    recipient: str
    amount: int
    op_type: int = OP_TYPE_TRANSACTION

    def validate(self) -> None:
        """Reject non-integral, non-finite, negative or oversized fields
        before any byte is emitted."""
        for name in ("fee", "expire_period", "amount", "op_type"):
            value = getattr(self, name)
            if isinstance(value, float) and not math.isfinite(value):
                raise InvalidAmountError(f"{name} must be finite, got {value!r}")
            check_u64(value, name)


def serialize(op: Operation) -> bytes:
    """Encode *op* into its canonical bytes.

    Raises ``InvalidAmountError`` for bad numeric fields and
    ``InvalidAddressError`` for an undecodable recipient.
    """
    op.validate()
    recipient_hash = decode_address(op.recipient)
    return b"".join((
        encode_varint(op.fee),
        encode_varint(op.expire_period),
        encode_varint(op.op_type),
        recipient_hash,
        encode_varint(op.amount),
    ))


def deserialize(data: bytes) -> Operation:
    """Inverse of ``serialize``; the whole buffer must be consumed."""
    data = bytes(data)
    fee, pos = decode_varint(data, 0)
    expire_period, pos = decode_varint(data, pos)
    op_type, pos = decode_varint(data, pos)
    if len(data) - pos < HASH_SIZE:
        raise MalformedOperationError(
            f"Expected {HASH_SIZE} recipient bytes at offset {pos}, "
            f"only {len(data) - pos} left"
        )
    recipient_hash = data[pos:pos + HASH_SIZE]
    pos += HASH_SIZE
    amount, pos = decode_varint(data, pos)
    if pos != len(data):
        raise MalformedOperationError(f"{len(data) - pos} trailing bytes after amount")
    return Operation(
        fee=fee,
        expire_period=expire_period,
        recipient=hash_to_address(recipient_hash),
        amount=amount,
        op_type=op_type,
    )
