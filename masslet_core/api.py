"""
Public surface of the wallet core.

``WalletAPI`` is what a presentation layer (GUI, CLI, web view) talks to.
It owns one ``RpcClient`` and one ``TransactionOrchestrator`` and returns
plain JSON-friendly values:

    create_wallet()                          -> {mnemonic, public_key, private_key, address}
    import_wallet_from_mnemonic(mnemonic)    -> same shape
    generate_address(public_key_hex)         -> address
    validate_address(address)                -> bool
    get_wallet_balance(address)              -> "12.345000"
    send_transaction(key, from, to, amount)  -> {success, operation_id} | {success: False, error, code}
    get_transaction_history(address)         -> [{id, from, to, amount, timestamp, status}, ...]
    get_network_info()                       -> {network, block_height, peers, version}

Usage:
    async with WalletAPI(load_config("masslet.toml")) as api:
        print(await api.get_wallet_balance(address))
"""

from __future__ import annotations

import logging
from typing import Any

from masslet_core.address import compute_address, is_valid_address
from masslet_core.config import MassletConfig
from masslet_core.errors import InvalidKeyLengthError, MassletError
from masslet_core.keystore import PassphraseCipher
from masslet_core.orchestrator import TransactionOrchestrator
from masslet_core.rpc import CancelToken, RpcClient
from masslet_core.wallet import KeyPair, Wallet

logger = logging.getLogger("masslet_api")


class WalletAPI:
    """Facade over key derivation, the codecs and the orchestrator."""

    def __init__(
        self,
        config: MassletConfig | None = None,
        rpc: RpcClient | None = None,
        cipher: PassphraseCipher | None = None,
    ):
        self.config = config or MassletConfig()
        self.rpc = rpc or RpcClient.from_config(self.config.rpc)
        self.cipher = cipher or PassphraseCipher(self.config.keystore.kdf_iterations)
        self.orchestrator = TransactionOrchestrator(
            self.rpc, self.config.chain, self.config.history,
        )

    async def close(self) -> None:
        await self.rpc.close()

    async def __aenter__(self) -> WalletAPI:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    # ── keys & addresses (offline) ───────────────────────────────

    def create_wallet(self) -> dict:
        wallet = Wallet.create()
        logger.info(f"Created wallet {wallet.address}")
        return wallet.to_dict()

    def import_wallet_from_mnemonic(self, mnemonic: str) -> dict:
        wallet = Wallet.from_mnemonic(mnemonic)
        logger.info(f"Imported wallet {wallet.address}")
        return wallet.to_dict()

    def generate_address(self, public_key_hex: str) -> str:
        try:
            public_key = bytes.fromhex(public_key_hex.strip())
        except (AttributeError, ValueError):
            raise InvalidKeyLengthError("Public key is not valid hex") from None
        return compute_address(public_key)

    def validate_address(self, address: str) -> bool:
        return is_valid_address(address)

    def encrypt_private_key(self, private_key: bytes | str, password: str) -> dict:
        """Encrypted blob for the persistence layer to store."""
        key_pair = KeyPair.from_private_key(private_key)
        blob = self.cipher.encrypt(key_pair.private_key, password)
        blob["address"] = key_pair.address
        return blob

    def decrypt_private_key(self, blob: dict | str, password: str) -> str:
        return self.cipher.decrypt(blob, password).hex()

    def _key_pair(self, key_material: Any, password: str | None) -> KeyPair:
        if password is not None:
            return KeyPair.from_private_key(self.cipher.decrypt(key_material, password))
        return KeyPair.from_private_key(key_material)

    # ── network ──────────────────────────────────────────────────

    async def get_wallet_balance(self, address: str, cancel: CancelToken | None = None) -> str:
        return await self.orchestrator.resolve_balance(address, cancel=cancel)

    async def send_transaction(
        self,
        key_material: Any,
        from_address: str,
        to_address: str,
        amount: Any,
        chain_id: int | None = None,
        password: str | None = None,
        cancel: CancelToken | None = None,
    ) -> dict:
        """Sign and submit a transfer of *amount* MAS.

        *key_material* is a raw private key (64-byte expanded key or 32-byte
        seed, bytes or hex) or, when *password* is given, an encrypted blob
        from ``encrypt_private_key``.  Never raises ``MassletError``: the
        failure is returned as ``{"success": False, "error", "code"}``.
        """
        try:
            key_pair = self._key_pair(key_material, password)
            result = await self.orchestrator.send(
                key_pair, from_address, to_address, amount,
                chain_id=chain_id, cancel=cancel,
            )
        except MassletError as exc:
            logger.error(f"Send from {from_address} failed [{exc.code}]: {exc.message}")
            return {"success": False, "error": exc.message, "code": exc.code}
        return {
            "success": True,
            "operation_id": result.operation_id,
            "message": "Transaction sent successfully",
        }

    async def get_transaction_history(
        self, address: str, cancel: CancelToken | None = None,
    ) -> list[dict]:
        records = await self.orchestrator.resolve_history(address, cancel=cancel)
        return [r.to_dict() for r in records]

    async def get_network_info(self, cancel: CancelToken | None = None) -> dict:
        return await self.orchestrator.network_info(cancel=cancel)
