"""
Massa user-address codec.

    address = "AU" + Base58Check(0x00 || SHA-256(public_key))

The Base58Check payload is always 33 bytes: a zero version byte followed
by the 32-byte public-key hash.  ``decode_address`` is the only way the
rest of the core turns an address back into bytes, and it never guesses.
"""

from __future__ import annotations

import hashlib

import base58

from masslet_core.errors import InvalidAddressError, InvalidKeyLengthError

ADDRESS_PREFIX = "AU"
ADDRESS_VERSION = 0
PUBLIC_KEY_SIZE = 32
HASH_SIZE = 32


def hash_to_address(key_hash: bytes) -> str:
    """Encode a raw 32-byte public-key hash as an address string."""
    if len(key_hash) != HASH_SIZE:
        raise InvalidAddressError(
            f"Address hash must be {HASH_SIZE} bytes, got {len(key_hash)}"
        )
    payload = bytes([ADDRESS_VERSION]) + bytes(key_hash)
    return ADDRESS_PREFIX + base58.b58encode_check(payload).decode("ascii")


def compute_address(public_key: bytes) -> str:
    """Derive the address of a 32-byte Ed25519 public key."""
    if len(public_key) != PUBLIC_KEY_SIZE:
        raise InvalidKeyLengthError(
            f"Public key must be {PUBLIC_KEY_SIZE} bytes, got {len(public_key)}"
        )
    return hash_to_address(hashlib.sha256(bytes(public_key)).digest())


def decode_address(address: str) -> bytes:
    """Return the 32-byte public-key hash embedded in *address*.

    Raises ``InvalidAddressError`` on a wrong prefix, bad Base58 characters,
    a checksum mismatch, a payload that is not 33 bytes, or a non-zero
    version byte.
    """
    if not isinstance(address, str) or not address.startswith(ADDRESS_PREFIX):
        raise InvalidAddressError(f"Address must start with {ADDRESS_PREFIX!r}")
    body = address[len(ADDRESS_PREFIX):]
    if not body or body != body.strip():
        raise InvalidAddressError("Address has no Base58Check body")
    try:
        payload = base58.b58decode_check(body)
    except ValueError as exc:
        raise InvalidAddressError(f"Invalid Base58Check encoding: {exc}") from None
    if len(payload) != 1 + HASH_SIZE:
        raise InvalidAddressError(
            f"Decoded address must be {1 + HASH_SIZE} bytes, got {len(payload)}"
        )
    if payload[0] != ADDRESS_VERSION:
        raise InvalidAddressError(f"Unsupported address version {payload[0]}")
    return bytes(payload[1:])


def is_valid_address(address: str) -> bool:
    try:
        decode_address(address)
    except InvalidAddressError:
        return False
    return True


def shorten_address(address: str, length: int = 10) -> str:
    """``AU12oQPzbL...1ahorDYUzA`` style label for display."""
    if not address:
        return ""
    if len(address) <= length * 2:
        return address
    return f"{address[:length]}...{address[-length:]}"
