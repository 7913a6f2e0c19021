"""
Masslet - client-side wallet core for the Massa proof-of-stake ledger.

Key features:
- BIP-39 mnemonic key derivation (Ed25519)
- "AU" + Base58Check address encoding
- Canonical varint serialization of transfer operations
- Chain-bound Ed25519 signing
- JSON-RPC client with ordered endpoint failover
"""

__version__ = "1.0.0"
__all__ = [
    "errors",
    "precision",
    "wallet",
    "address",
    "operation",
    "signer",
    "rpc",
    "responses",
    "orchestrator",
    "keystore",
    "api",
    "config",
    "logging_config",
]
