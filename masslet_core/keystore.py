"""
Passphrase encryption of private keys.

The wallet core never persists keys itself; it only calls through this
capability when a caller hands it an encrypted key blob.  The blob format
is AES-256-GCM with a PBKDF2-HMAC-SHA256 derived key:

    {
      "version": 3,
      "kdf": "pbkdf2-hmac-sha256",
      "kdf_iterations": 600000,
      "salt": hex, "nonce": hex, "tag": hex,
      "encrypted_private_key": hex
    }
"""

from __future__ import annotations

import hashlib
import json
import os
from typing import Any

from Crypto.Cipher import AES

from masslet_core.errors import KeystoreError

BLOB_VERSION = 3
KDF_NAME = "pbkdf2-hmac-sha256"
DEFAULT_ITERATIONS = 600_000
# Accepted range for a blob's own kdf_iterations field.
MIN_ITERATIONS = 1
MAX_ITERATIONS = 10_000_000


class PassphraseCipher:
    """Encrypt / decrypt raw key bytes under a user password."""

    def __init__(self, iterations: int = DEFAULT_ITERATIONS):
        if not MIN_ITERATIONS <= iterations <= MAX_ITERATIONS:
            raise ValueError(f"iterations must be within [{MIN_ITERATIONS}, {MAX_ITERATIONS}]")
        self.iterations = iterations

    @staticmethod
    def _derive_key(password: str, salt: bytes, iterations: int) -> bytes:
        return hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations)

    def encrypt(self, private_key: bytes, password: str) -> dict:
        salt = os.urandom(16)
        key = self._derive_key(password, salt, self.iterations)
        nonce = os.urandom(12)  # 96-bit nonce, fresh per encryption
        cipher = AES.new(key, AES.MODE_GCM, nonce=nonce)
        ciphertext, tag = cipher.encrypt_and_digest(bytes(private_key))
        return {
            "version": BLOB_VERSION,
            "kdf": KDF_NAME,
            "kdf_iterations": self.iterations,
            "salt": salt.hex(),
            "nonce": nonce.hex(),
            "tag": tag.hex(),
            "encrypted_private_key": ciphertext.hex(),
        }

    def decrypt(self, blob: dict[str, Any] | str, password: str) -> bytes:
        """Open *blob*.  Raises ``KeystoreError`` on a wrong password or a
        damaged blob; never returns unauthenticated bytes."""
        if isinstance(blob, str):
            try:
                blob = json.loads(blob)
            except ValueError:
                raise KeystoreError("Encrypted key blob is not valid JSON") from None
        if not isinstance(blob, dict):
            raise KeystoreError("Encrypted key blob must be an object")
        if blob.get("version") != BLOB_VERSION or blob.get("kdf", KDF_NAME) != KDF_NAME:
            raise KeystoreError(f"Unsupported key blob version {blob.get('version')!r}")
        try:
            salt = bytes.fromhex(blob["salt"])
            nonce = bytes.fromhex(blob["nonce"])
            tag = bytes.fromhex(blob["tag"])
            ciphertext = bytes.fromhex(blob["encrypted_private_key"])
            iterations = int(blob.get("kdf_iterations", DEFAULT_ITERATIONS))
            if not MIN_ITERATIONS <= iterations <= MAX_ITERATIONS:
                raise ValueError(f"kdf_iterations {iterations} outside [{MIN_ITERATIONS}, {MAX_ITERATIONS}]")
        except (KeyError, TypeError, ValueError) as exc:
            raise KeystoreError(f"Malformed key blob: {exc}") from None

        key = self._derive_key(password, salt, iterations)
        cipher = AES.new(key, AES.MODE_GCM, nonce=nonce)
        try:
            return cipher.decrypt_and_verify(ciphertext, tag)
        except ValueError:
            raise KeystoreError("Wrong password or corrupted key blob") from None
