"""
Wallet key management for Masslet.

A wallet wraps an Ed25519 key-pair and provides:
  - BIP-39 mnemonic phrase generation and validation
  - Deterministic key derivation (mnemonic -> 64-byte seed -> first 32
    bytes used as the Ed25519 seed)
  - Address derivation
  - Passphrase-encrypted export / import of the private key
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any

from mnemonic import Mnemonic
from nacl.signing import SigningKey

from masslet_core.address import compute_address
from masslet_core.errors import (
    InvalidKeyLengthError,
    InvalidMnemonicError,
    SigningError,
)
from masslet_core.keystore import PassphraseCipher

SEED_SIZE = 32
PUBLIC_KEY_SIZE = 32
PRIVATE_KEY_SIZE = 64  # Ed25519 seed || public key


# ===================================================================
#  BIP-39 Mnemonic Support
# ===================================================================

_MNEMO: Mnemonic | None = None


def _get_mnemo() -> Mnemonic:
    global _MNEMO
    if _MNEMO is None:
        _MNEMO = Mnemonic("english")
    return _MNEMO


def _generate_entropy(strength: int = 128) -> bytes:
    """Generate random entropy for mnemonic (128/160/192/224/256 bits)."""
    if strength not in (128, 160, 192, 224, 256):
        raise ValueError("Strength must be 128/160/192/224/256")
    return os.urandom(strength // 8)


def _normalize(mnemonic: str) -> str:
    return " ".join(mnemonic.split())


def generate_mnemonic(strength: int = 128) -> str:
    """Generate a new checksummed BIP-39 phrase (12 words by default)."""
    return _get_mnemo().to_mnemonic(_generate_entropy(strength))


def validate_mnemonic(mnemonic: str) -> bool:
    """Check wordlist membership, word count and the BIP-39 checksum."""
    if not isinstance(mnemonic, str):
        return False
    return _get_mnemo().check(_normalize(mnemonic))


def mnemonic_to_seed(mnemonic: str, passphrase: str = "") -> bytes:
    """Stretch a validated mnemonic into the 64-byte BIP-39 seed."""
    if not validate_mnemonic(mnemonic):
        raise InvalidMnemonicError("Invalid mnemonic phrase")
    return Mnemonic.to_seed(_normalize(mnemonic), passphrase)


# ===================================================================
#  Ed25519 key-pair
# ===================================================================

@dataclass(frozen=True, repr=False)
class KeyPair:
    """Raw Ed25519 key material.

    ``private_key`` is the 64-byte expanded form (seed followed by the
    public key).  Lengths are checked where the bytes are used, not here.
    """

    public_key: bytes
    private_key: bytes

    @classmethod
    def from_seed(cls, seed: bytes) -> KeyPair:
        """Seed-based (not random) key generation."""
        if len(seed) != SEED_SIZE:
            raise InvalidKeyLengthError(f"Ed25519 seed must be {SEED_SIZE} bytes, got {len(seed)}")
        sk = SigningKey(bytes(seed))
        public = bytes(sk.verify_key)
        return cls(public_key=public, private_key=bytes(sk) + public)

    @classmethod
    def from_private_key(cls, key: bytes | str) -> KeyPair:
        """Rebuild a key-pair from a 64-byte expanded key or a 32-byte seed,
        as raw bytes or hex."""
        if isinstance(key, str):
            try:
                key = bytes.fromhex(key.strip())
            except ValueError:
                raise InvalidKeyLengthError("Private key is not valid hex") from None
        elif not isinstance(key, (bytes, bytearray)):
            raise InvalidKeyLengthError(
                f"Private key must be bytes or hex, got {type(key).__name__}"
            )
        key = bytes(key)
        if len(key) == SEED_SIZE:
            return cls.from_seed(key)
        if len(key) != PRIVATE_KEY_SIZE:
            raise InvalidKeyLengthError(
                f"Private key must be {SEED_SIZE} or {PRIVATE_KEY_SIZE} bytes, got {len(key)}"
            )
        pair = cls.from_seed(key[:SEED_SIZE])
        if pair.public_key != key[SEED_SIZE:]:
            raise SigningError("Embedded public key does not match the private seed")
        return pair

    @property
    def address(self) -> str:
        return compute_address(self.public_key)

    def signing_key(self) -> SigningKey:
        if len(self.private_key) != PRIVATE_KEY_SIZE:
            raise SigningError(
                f"Private key must be {PRIVATE_KEY_SIZE} bytes, got {len(self.private_key)}"
            )
        return SigningKey(self.private_key[:SEED_SIZE])

    def __repr__(self) -> str:
        return f"KeyPair(public_key={self.public_key.hex()}, private_key=<redacted>)"


def derive_keypair(mnemonic: str, passphrase: str = "") -> KeyPair:
    """Deterministic mnemonic -> key-pair derivation.

    The 64-byte BIP-39 seed is cut to its first 32 bytes, which seed the
    Ed25519 key.  Raises ``InvalidMnemonicError`` on a bad checksum.
    """
    seed = mnemonic_to_seed(mnemonic, passphrase)
    return KeyPair.from_seed(seed[:SEED_SIZE])


# ===================================================================
#  Wallet
# ===================================================================

class Wallet:
    """User-facing wallet: a key-pair plus the phrase it came from."""

    def __init__(self, key_pair: KeyPair, mnemonic: str | None = None):
        self.key_pair = key_pair
        self.mnemonic = mnemonic
        self.address = compute_address(key_pair.public_key)

    # ---- factory methods ----

    @classmethod
    def create(cls, strength: int = 128) -> Wallet:
        """Generate a brand-new wallet with a fresh mnemonic."""
        return cls.from_mnemonic(generate_mnemonic(strength))

    @classmethod
    def from_mnemonic(cls, mnemonic: str, passphrase: str = "") -> Wallet:
        phrase = _normalize(mnemonic) if isinstance(mnemonic, str) else mnemonic
        return cls(derive_keypair(phrase, passphrase), mnemonic=phrase)

    @classmethod
    def from_private_key(cls, key: bytes | str) -> Wallet:
        return cls(KeyPair.from_private_key(key))

    @property
    def public_key(self) -> bytes:
        return self.key_pair.public_key

    @property
    def private_key(self) -> bytes:
        return self.key_pair.private_key

    # ---- serialisation ----

    def to_dict(self) -> dict:
        return {
            "mnemonic": self.mnemonic,
            "public_key": self.public_key.hex(),
            "private_key": self.private_key.hex(),
            "address": self.address,
        }

    def export_encrypted(self, password: str, cipher: PassphraseCipher | None = None) -> dict:
        """Export the private key encrypted under *password*.

        The mnemonic is not included.
        """
        cipher = cipher or PassphraseCipher()
        data = cipher.encrypt(self.private_key, password)
        data["address"] = self.address
        data["public_key"] = self.public_key.hex()
        return data

    @classmethod
    def import_encrypted(
        cls, data: dict[str, Any], password: str, cipher: PassphraseCipher | None = None,
    ) -> Wallet:
        """Inverse of ``export_encrypted``.  Raises ``KeystoreError`` on a
        wrong password."""
        cipher = cipher or PassphraseCipher()
        return cls.from_private_key(cipher.decrypt(data, password))

    def __repr__(self) -> str:
        return f"Wallet({self.address})"
