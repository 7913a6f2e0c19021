"""
Operation signing.

The signed message binds the operation to a network and to its creator:

    payload = be_u64(chain_id) || public_key (32) || serialized_operation

The Ed25519 signature over that payload travels detached, base64-encoded
next to the base64 public key.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass

from nacl.exceptions import BadSignatureError
from nacl.signing import VerifyKey

from masslet_core.errors import SigningError
from masslet_core.operation import Operation, serialize
from masslet_core.precision import U64_MAX
from masslet_core.wallet import PRIVATE_KEY_SIZE, PUBLIC_KEY_SIZE, KeyPair

SIGNATURE_SIZE = 64


@dataclass(frozen=True)
class SignedSubmission:
    serialized_content: bytes
    creator_public_key: str  # base64
    signature: str           # base64

    def to_rpc(self) -> dict:
        """Shape expected by ``send_operations``."""
        return {
            "serialized_content": list(self.serialized_content),
            "creator_public_key": self.creator_public_key,
            "signature": self.signature,
        }


def build_signing_payload(chain_id: int, public_key: bytes, serialized: bytes) -> bytes:
    if isinstance(chain_id, bool) or not isinstance(chain_id, int) or not 0 <= chain_id <= U64_MAX:
        raise SigningError(f"Chain id must be an unsigned 64-bit integer, got {chain_id!r}")
    if len(public_key) != PUBLIC_KEY_SIZE:
        raise SigningError(f"Public key must be {PUBLIC_KEY_SIZE} bytes, got {len(public_key)}")
    return chain_id.to_bytes(8, "big") + bytes(public_key) + bytes(serialized)


def sign(op: Operation, key_pair: KeyPair, chain_id: int) -> SignedSubmission:
    """Serialize *op* and sign it for *chain_id*.  Pure function."""
    if len(key_pair.private_key) != PRIVATE_KEY_SIZE:
        raise SigningError(
            f"Private key must be {PRIVATE_KEY_SIZE} bytes, got {len(key_pair.private_key)}"
        )
    signing_key = key_pair.signing_key()
    if bytes(signing_key.verify_key) != key_pair.public_key:
        raise SigningError("Public key does not belong to the private key")

    serialized = serialize(op)
    payload = build_signing_payload(chain_id, key_pair.public_key, serialized)
    signature = signing_key.sign(payload).signature
    return SignedSubmission(
        serialized_content=serialized,
        creator_public_key=base64.b64encode(key_pair.public_key).decode("ascii"),
        signature=base64.b64encode(signature).decode("ascii"),
    )


def verify(submission: SignedSubmission, chain_id: int) -> bool:
    """Check a submission's signature against its own public key."""
    try:
        public_key = base64.b64decode(submission.creator_public_key, validate=True)
        signature = base64.b64decode(submission.signature, validate=True)
    except ValueError:
        return False
    if len(public_key) != PUBLIC_KEY_SIZE or len(signature) != SIGNATURE_SIZE:
        return False
    payload = build_signing_payload(chain_id, public_key, submission.serialized_content)
    try:
        VerifyKey(public_key).verify(payload, signature)
    except BadSignatureError:
        return False
    return True
