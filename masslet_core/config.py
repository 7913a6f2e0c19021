"""
TOML-based configuration for the Masslet wallet core.

Loads settings from a TOML file and/or environment variables.
Environment variables take precedence over file values.

Usage:
    from masslet_core.config import load_config
    cfg = load_config("masslet.toml")
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib  # type: ignore[import,no-redef]


DEFAULT_ENDPOINTS: list[str] = [
    "https://buildnet.massa.net/api/v2",
    "https://buildnet.massa.net/api",
    "https://test.massa.net/api/v2",
    "https://test.massa.net/api",
]


@dataclass
class RPCConfig:
    """Ordered node endpoints; the first is tried first on every call."""
    endpoints: list[str] = field(default_factory=lambda: list(DEFAULT_ENDPOINTS))
    timeout_seconds: float = 10.0
    jsonrpc_version: str = "2.0"


@dataclass
class ChainConfig:
    """Network identity and operation defaults."""
    network_name: str = "Massa Buildnet"
    chain_id: int = 77658366          # buildnet; mixed into every signature
    fee_nano: int = 10_000_000        # 0.01 MAS
    expire_periods: int = 10          # expire_period = current period + this


@dataclass
class HistoryConfig:
    max_operations: int = 10          # operation details fetched per history call
    lookback_periods: int = 100       # block-scan window when metadata is empty


@dataclass
class KeystoreConfig:
    kdf_iterations: int = 600_000


@dataclass
class LoggingConfig:
    """Logging settings."""
    level: str = "INFO"
    format: str = "human"   # "human" or "json"
    file: str | None = None


@dataclass
class MassletConfig:
    """Top-level configuration container."""
    rpc: RPCConfig = field(default_factory=RPCConfig)
    chain: ChainConfig = field(default_factory=ChainConfig)
    history: HistoryConfig = field(default_factory=HistoryConfig)
    keystore: KeystoreConfig = field(default_factory=KeystoreConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _merge(dc: Any, raw: dict[str, Any]) -> None:
    """Merge a raw dict into a dataclass instance (in-place)."""
    for key, value in raw.items():
        key_under = key.replace("-", "_")
        if hasattr(dc, key_under):
            setattr(dc, key_under, value)


def load_config(path: str | None = None) -> MassletConfig:
    """
    Load configuration from a TOML file, then overlay environment variables.

    Env-var mapping:
        MASSLET_RPC_ENDPOINTS -> rpc.endpoints   (comma-separated, ordered)
        MASSLET_RPC_TIMEOUT   -> rpc.timeout_seconds
        MASSLET_CHAIN_ID      -> chain.chain_id
        MASSLET_FEE_NANO      -> chain.fee_nano
        MASSLET_NETWORK       -> chain.network_name
        MASSLET_LOG_LEVEL     -> logging.level
        MASSLET_LOG_FMT       -> logging.format
        MASSLET_LOG_FILE      -> logging.file
    """
    cfg = MassletConfig()

    # ── TOML file ────────────────────────────────────────────────
    if path is not None:
        p = Path(path)
        if p.exists():
            with open(p, "rb") as f:
                data = tomllib.load(f)
            for section_name, section_dc in [
                ("rpc", cfg.rpc),
                ("chain", cfg.chain),
                ("history", cfg.history),
                ("keystore", cfg.keystore),
                ("logging", cfg.logging),
            ]:
                if section_name in data:
                    _merge(section_dc, data[section_name])

    # ── Environment variable overrides ───────────────────────────
    if v := os.environ.get("MASSLET_RPC_ENDPOINTS"):
        cfg.rpc.endpoints = [e.strip() for e in v.split(",") if e.strip()]
    if v := os.environ.get("MASSLET_RPC_TIMEOUT"):
        cfg.rpc.timeout_seconds = float(v)
    if v := os.environ.get("MASSLET_CHAIN_ID"):
        cfg.chain.chain_id = int(v)
    if v := os.environ.get("MASSLET_FEE_NANO"):
        cfg.chain.fee_nano = int(v)
    if v := os.environ.get("MASSLET_NETWORK"):
        cfg.chain.network_name = v
    if v := os.environ.get("MASSLET_LOG_LEVEL"):
        cfg.logging.level = v.upper()
    if v := os.environ.get("MASSLET_LOG_FMT"):
        cfg.logging.format = v
    if v := os.environ.get("MASSLET_LOG_FILE"):
        cfg.logging.file = v

    return cfg
