"""
Tests for masslet_core.logging_config - formatters, handler setup and key
redaction.
"""

import json
import logging

import pytest

from masslet_core.logging_config import (
    KeyRedactionFilter,
    _HumanFormatter,
    _JSONFormatter,
    redact,
    setup_logging,
)

from tests.conftest import ABANDON_ADDRESS, ABANDON_PRIVATE_HEX, ABANDON_SEED_HEX
from tests.test_signer import PINNED_SIGNATURE_B64


def _record(msg, *args, level=logging.INFO):
    return logging.LogRecord("masslet_test", level, __file__, 1, msg, args, None)


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


class TestRedact:

    def test_expanded_private_key(self):
        out = redact(f"key={ABANDON_PRIVATE_HEX}")
        assert ABANDON_PRIVATE_HEX not in out
        assert out.startswith("key=5eb00bbd")
        assert "<redacted>" in out

    def test_seed(self):
        assert ABANDON_SEED_HEX not in redact(ABANDON_SEED_HEX)

    def test_signature(self):
        out = redact(f"sig {PINNED_SIGNATURE_B64}")
        assert PINNED_SIGNATURE_B64 not in out
        assert out.startswith("sig nYNn1X2z")

    def test_address_untouched(self):
        assert redact(f"sent to {ABANDON_ADDRESS}") == f"sent to {ABANDON_ADDRESS}"

    def test_short_hex_untouched(self):
        assert redact("period 0x4a0f8fe") == "period 0x4a0f8fe"


class TestKeyRedactionFilter:

    def test_rewrites_args(self):
        record = _record("private key %s", ABANDON_PRIVATE_HEX)
        assert KeyRedactionFilter().filter(record) is True
        assert ABANDON_PRIVATE_HEX not in record.getMessage()
        assert record.args is None

    def test_leaves_clean_records(self):
        record = _record("balance %s", "1.000000")
        KeyRedactionFilter().filter(record)
        assert record.args == ("1.000000",)
        assert record.getMessage() == "balance 1.000000"


class TestFormatters:

    def test_json(self):
        out = json.loads(_JSONFormatter().format(_record("hello %s", "world")))
        assert out["msg"] == "hello world"
        assert out["level"] == "INFO"
        assert out["logger"] == "masslet_test"
        assert "ts" in out

    def test_json_exception_redacted(self):
        try:
            raise ValueError(ABANDON_PRIVATE_HEX)
        except ValueError:
            import sys
            record = logging.LogRecord(
                "masslet_test", logging.ERROR, __file__, 1, "failed", None, sys.exc_info(),
            )
        out = json.loads(_JSONFormatter().format(record))
        assert ABANDON_PRIVATE_HEX not in out["exception"]

    def test_human(self):
        out = _HumanFormatter().format(_record("ping", level=logging.WARNING))
        assert "WARNING" in out
        assert "masslet_test: ping" in out

    def test_human_colour_toggle(self):
        record = _record("ping", level=logging.ERROR)
        assert "\033[31m" in _HumanFormatter(colour=True).format(record)
        assert "\033[" not in _HumanFormatter(colour=False).format(record)


class TestSetupLogging:

    def test_console_handler(self, restore_root_logger):
        setup_logging(level="debug")
        root = restore_root_logger
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        handler = root.handlers[0]
        assert isinstance(handler.formatter, _HumanFormatter)
        assert any(isinstance(f, KeyRedactionFilter) for f in handler.filters)

    def test_json_console(self, restore_root_logger):
        setup_logging(fmt="json")
        assert isinstance(restore_root_logger.handlers[0].formatter, _JSONFormatter)

    def test_unknown_level_falls_back_to_info(self, restore_root_logger):
        setup_logging(level="chatty")
        assert restore_root_logger.level == logging.INFO

    def test_file_handler_redacts(self, restore_root_logger, tmp_path):
        log_file = tmp_path / "logs" / "masslet.log"
        setup_logging(log_file=str(log_file))
        assert len(restore_root_logger.handlers) == 2
        logging.getLogger("masslet_test").warning(f"leaked {ABANDON_PRIVATE_HEX}")
        for handler in restore_root_logger.handlers:
            handler.flush()
        restore_root_logger.handlers[1].close()
        text = log_file.read_text()
        assert "leaked 5eb00bbd" in text
        assert ABANDON_PRIVATE_HEX not in text
        json.loads(text.splitlines()[-1])
