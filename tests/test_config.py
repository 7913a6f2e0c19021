"""
Tests for masslet_core.config - TOML configuration and environment overrides.

Covers:
  - Default values for all dataclass sections
  - TOML parsing and section merging
  - Environment variable overrides (precedence over TOML)
  - _merge helper edge cases
  - Missing TOML files
"""

from __future__ import annotations

import os
import textwrap
import unittest
from unittest.mock import patch

from masslet_core.config import (
    DEFAULT_ENDPOINTS,
    ChainConfig,
    HistoryConfig,
    KeystoreConfig,
    LoggingConfig,
    MassletConfig,
    RPCConfig,
    _merge,
    load_config,
)

# ═══════════════════════════════════════════════════════════════════
#  Defaults
# ═══════════════════════════════════════════════════════════════════

class TestDefaults(unittest.TestCase):

    def test_rpc_defaults(self):
        r = RPCConfig()
        self.assertEqual(r.endpoints, DEFAULT_ENDPOINTS)
        self.assertEqual(r.endpoints[0], "https://buildnet.massa.net/api/v2")
        self.assertEqual(len(r.endpoints), 4)
        self.assertEqual(r.timeout_seconds, 10.0)
        self.assertEqual(r.jsonrpc_version, "2.0")

    def test_endpoint_lists_not_shared(self):
        a = RPCConfig()
        a.endpoints.append("http://extra")
        self.assertEqual(len(RPCConfig().endpoints), 4)

    def test_chain_defaults(self):
        c = ChainConfig()
        self.assertEqual(c.network_name, "Massa Buildnet")
        self.assertEqual(c.chain_id, 77658366)
        self.assertEqual(c.fee_nano, 10_000_000)
        self.assertEqual(c.expire_periods, 10)

    def test_history_defaults(self):
        h = HistoryConfig()
        self.assertEqual(h.max_operations, 10)
        self.assertEqual(h.lookback_periods, 100)

    def test_keystore_defaults(self):
        self.assertEqual(KeystoreConfig().kdf_iterations, 600_000)

    def test_logging_defaults(self):
        log_cfg = LoggingConfig()
        self.assertEqual(log_cfg.level, "INFO")
        self.assertEqual(log_cfg.format, "human")
        self.assertIsNone(log_cfg.file)

    def test_masslet_config_defaults(self):
        cfg = MassletConfig()
        self.assertIsInstance(cfg.rpc, RPCConfig)
        self.assertIsInstance(cfg.chain, ChainConfig)
        self.assertIsInstance(cfg.history, HistoryConfig)


# ═══════════════════════════════════════════════════════════════════
#  _merge helper
# ═══════════════════════════════════════════════════════════════════

class TestMerge(unittest.TestCase):

    def test_merge_updates_fields(self):
        c = ChainConfig()
        _merge(c, {"chain_id": 1, "fee_nano": 5})
        self.assertEqual(c.chain_id, 1)
        self.assertEqual(c.fee_nano, 5)

    def test_merge_ignores_unknown_keys(self):
        c = ChainConfig()
        _merge(c, {"unknown_field": 42})
        self.assertFalse(hasattr(c, "unknown_field"))

    def test_merge_hyphenated_keys(self):
        r = RPCConfig()
        _merge(r, {"timeout-seconds": 3.5})
        self.assertEqual(r.timeout_seconds, 3.5)

    def test_merge_empty_dict(self):
        c = ChainConfig()
        _merge(c, {})
        self.assertEqual(c.chain_id, 77658366)


# ═══════════════════════════════════════════════════════════════════
#  TOML loading
# ═══════════════════════════════════════════════════════════════════

class TestLoadConfig(unittest.TestCase):

    def test_load_no_file(self):
        cfg = load_config(None)
        self.assertEqual(cfg.chain.chain_id, 77658366)

    def test_load_missing_file(self):
        cfg = load_config("/tmp/__nonexistent_masslet_config__.toml")
        self.assertEqual(cfg.rpc.endpoints, DEFAULT_ENDPOINTS)

    def test_load_toml_file(self):
        import tempfile
        content = textwrap.dedent("""\
            [rpc]
            endpoints = ["http://node-a:33035", "http://node-b:33035"]
            timeout_seconds = 4.0

            [chain]
            network_name = "Massa Mainnet"
            chain_id = 77658377

            [history]
            max_operations = 5

            [keystore]
            kdf_iterations = 1000

            [logging]
            level = "DEBUG"
            format = "json"
        """)
        with tempfile.NamedTemporaryFile(mode="w", suffix=".toml", delete=False) as f:
            f.write(content)
            f.flush()
            cfg = load_config(f.name)
        os.unlink(f.name)

        self.assertEqual(cfg.rpc.endpoints, ["http://node-a:33035", "http://node-b:33035"])
        self.assertEqual(cfg.rpc.timeout_seconds, 4.0)
        self.assertEqual(cfg.chain.network_name, "Massa Mainnet")
        self.assertEqual(cfg.chain.chain_id, 77658377)
        self.assertEqual(cfg.chain.fee_nano, 10_000_000)
        self.assertEqual(cfg.history.max_operations, 5)
        self.assertEqual(cfg.history.lookback_periods, 100)
        self.assertEqual(cfg.keystore.kdf_iterations, 1000)
        self.assertEqual(cfg.logging.level, "DEBUG")
        self.assertEqual(cfg.logging.format, "json")


# ═══════════════════════════════════════════════════════════════════
#  Environment variable overrides
# ═══════════════════════════════════════════════════════════════════

class TestEnvOverrides(unittest.TestCase):

    @patch.dict(os.environ, {"MASSLET_RPC_ENDPOINTS": "http://a, http://b ,,http://c"}, clear=False)
    def test_env_endpoints_ordered(self):
        cfg = load_config(None)
        self.assertEqual(cfg.rpc.endpoints, ["http://a", "http://b", "http://c"])

    @patch.dict(os.environ, {"MASSLET_RPC_TIMEOUT": "2.5"}, clear=False)
    def test_env_timeout(self):
        self.assertEqual(load_config(None).rpc.timeout_seconds, 2.5)

    @patch.dict(os.environ, {"MASSLET_CHAIN_ID": "1"}, clear=False)
    def test_env_chain_id(self):
        self.assertEqual(load_config(None).chain.chain_id, 1)

    @patch.dict(os.environ, {"MASSLET_FEE_NANO": "20000000"}, clear=False)
    def test_env_fee(self):
        self.assertEqual(load_config(None).chain.fee_nano, 20_000_000)

    @patch.dict(os.environ, {"MASSLET_NETWORK": "Massa Mainnet"}, clear=False)
    def test_env_network(self):
        self.assertEqual(load_config(None).chain.network_name, "Massa Mainnet")

    @patch.dict(os.environ, {"MASSLET_LOG_LEVEL": "debug"}, clear=False)
    def test_env_log_level_uppercased(self):
        self.assertEqual(load_config(None).logging.level, "DEBUG")

    @patch.dict(os.environ, {"MASSLET_LOG_FMT": "json"}, clear=False)
    def test_env_log_format(self):
        self.assertEqual(load_config(None).logging.format, "json")

    @patch.dict(os.environ, {"MASSLET_LOG_FILE": "/tmp/masslet.log"}, clear=False)
    def test_env_log_file(self):
        self.assertEqual(load_config(None).logging.file, "/tmp/masslet.log")

    @patch.dict(os.environ, {"MASSLET_RPC_ENDPOINTS": ""}, clear=False)
    def test_env_empty_endpoints_ignored(self):
        self.assertEqual(load_config(None).rpc.endpoints, DEFAULT_ENDPOINTS)

    @patch.dict(os.environ, {"MASSLET_CHAIN_ID": "42"}, clear=False)
    def test_env_wins_over_toml(self):
        import tempfile
        with tempfile.NamedTemporaryFile(mode="w", suffix=".toml", delete=False) as f:
            f.write("[chain]\nchain_id = 7\n")
            f.flush()
            cfg = load_config(f.name)
        os.unlink(f.name)
        self.assertEqual(cfg.chain.chain_id, 42)
