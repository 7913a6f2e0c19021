#!/usr/bin/env python3
"""
Masslet command-line wallet.

Commands:
    create                          New wallet (mnemonic + keys + address)
    import   <mnemonic words...>    Restore a wallet from its phrase
    address  <public-key-hex>       Address of a public key
    validate <address>              Check an address
    balance  <address>              Balance in MAS
    send     <to> <amount>          Sign and submit a transfer
    history  <address>              Recent transfers
    status                          Network info

Usage:
    python run_wallet.py --config masslet.toml balance AU12...
    MASSLET_PRIVATE_KEY=<hex> python run_wallet.py send AU12... 1.5

Results are printed as JSON on stdout; logs go to stderr.
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import getpass
import json
import logging
import os
import sys

# ---------------------------------------------------------------------------
# Ensure the project root is in sys.path so imports work before pip install
# ---------------------------------------------------------------------------
PROJECT_ROOT = os.path.dirname(os.path.abspath(__file__))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from masslet_core.api import WalletAPI  # noqa: E402
from masslet_core.config import load_config  # noqa: E402
from masslet_core.errors import MassletError  # noqa: E402
from masslet_core.logging_config import setup_logging  # noqa: E402
from masslet_core.wallet import KeyPair  # noqa: E402

logger = logging.getLogger("masslet_cli")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Masslet wallet")
    p.add_argument("--config", default=os.environ.get("MASSLET_CONFIG"),
                   help="Path to masslet.toml config file")
    p.add_argument("--log-level", default=None, help="Override logging level")
    sub = p.add_subparsers(dest="command", required=True)

    sub.add_parser("create", help="Generate a new wallet")

    imp = sub.add_parser("import", help="Restore a wallet from its mnemonic")
    imp.add_argument("words", nargs="+", help="Mnemonic words")

    addr = sub.add_parser("address", help="Address of a public key")
    addr.add_argument("public_key", help="32-byte public key, hex")

    val = sub.add_parser("validate", help="Check an address")
    val.add_argument("address")

    bal = sub.add_parser("balance", help="Balance of an address")
    bal.add_argument("address")

    send = sub.add_parser("send", help="Sign and submit a transfer")
    send.add_argument("to_address")
    send.add_argument("amount", help="Amount in MAS, e.g. 1.5")
    send.add_argument("--key-file", default=None,
                      help="Encrypted key blob (JSON); password is prompted")
    send.add_argument("--chain-id", type=int, default=None, help="Override chain id")

    hist = sub.add_parser("history", help="Recent transfers of an address")
    hist.add_argument("address")

    sub.add_parser("status", help="Network info")
    return p.parse_args(argv)


def _emit(payload) -> None:
    print(json.dumps(payload, indent=2))


def _send_key_material(args: argparse.Namespace) -> tuple[object, str | None]:
    """(key material, password) for ``send``: an encrypted key file, or a raw
    private key from ``MASSLET_PRIVATE_KEY``."""
    if args.key_file:
        with open(args.key_file, "r", encoding="utf-8") as f:
            blob = json.load(f)
        password = os.environ.get("MASSLET_KEY_PASSWORD") or getpass.getpass("Key password: ")
        return blob, password
    raw = os.environ.get("MASSLET_PRIVATE_KEY")
    if not raw:
        raise SystemExit("send needs --key-file or MASSLET_PRIVATE_KEY")
    return raw, None


async def run(args: argparse.Namespace) -> int:
    cfg = load_config(args.config)
    if args.log_level:
        cfg.logging.level = args.log_level.upper()
    setup_logging(level=cfg.logging.level, fmt=cfg.logging.format, log_file=cfg.logging.file)

    async with WalletAPI(cfg) as api:
        if args.command == "create":
            _emit(api.create_wallet())
        elif args.command == "import":
            _emit(api.import_wallet_from_mnemonic(" ".join(args.words)))
        elif args.command == "address":
            _emit({"address": api.generate_address(args.public_key)})
        elif args.command == "validate":
            valid = api.validate_address(args.address)
            _emit({"address": args.address, "valid": valid})
            return 0 if valid else 1
        elif args.command == "balance":
            _emit({"address": args.address, "balance": await api.get_wallet_balance(args.address)})
        elif args.command == "send":
            key_material, password = _send_key_material(args)
            if password is None:
                from_address = KeyPair.from_private_key(key_material).address
            else:
                from_address = key_material.get("address") or KeyPair.from_private_key(
                    api.decrypt_private_key(key_material, password)
                ).address
            result = await api.send_transaction(
                key_material, from_address, args.to_address, args.amount,
                chain_id=args.chain_id, password=password,
            )
            _emit(result)
            return 0 if result["success"] else 1
        elif args.command == "history":
            _emit(await api.get_transaction_history(args.address))
        elif args.command == "status":
            _emit(await api.get_network_info())
    return 0


async def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    try:
        return await run(args)
    except MassletError as exc:
        logger.error(f"{exc.code}: {exc.message}")
        _emit({"error": exc.message, "code": exc.code})
        return 1


if __name__ == "__main__":
    with contextlib.suppress(KeyboardInterrupt):
        sys.exit(asyncio.run(main()))


def main_sync():
    """Synchronous entry point for console_scripts."""
    with contextlib.suppress(KeyboardInterrupt):
        sys.exit(asyncio.run(main()))
