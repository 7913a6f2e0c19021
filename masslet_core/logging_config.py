"""
Process-wide logging for the wallet core and its CLI.

``setup_logging`` installs a stderr handler (human-readable or JSON lines)
and an optional JSON file handler.  Both pass through a
``KeyRedactionFilter``: any run of 64+ hex or 86+ base64 characters is cut
to an 8-character prefix before it is written, which covers seeds,
expanded private keys and signatures but leaves addresses and operation
ids intact.

    from masslet_core.logging_config import setup_logging
    setup_logging(level="DEBUG", fmt="json", log_file="masslet.log")
"""

from __future__ import annotations

import json
import logging
import re
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

# 64+ hex chars covers 32-byte seeds and 64-byte expanded keys;
# 86+ base64 chars covers 64-byte signatures.
_HEX_RUN = re.compile(r"\b[0-9a-fA-F]{64,}\b")
_B64_RUN = re.compile(r"[A-Za-z0-9+/]{86,}={0,2}")


def redact(text: str) -> str:
    """Mask long key-like runs, keeping an 8-char prefix for correlation."""
    text = _HEX_RUN.sub(lambda m: f"{m.group(0)[:8]}…<redacted>", text)
    return _B64_RUN.sub(lambda m: f"{m.group(0)[:8]}…<redacted>", text)


class KeyRedactionFilter(logging.Filter):
    """Rewrite the rendered message of each record through ``redact``."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        cleaned = redact(message)
        if cleaned != message:
            record.msg = cleaned
            record.args = None
        return True


_LEVEL_COLOURS = {
    "DEBUG": "\033[36m",
    "INFO": "\033[32m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[1;31m",
}
_RESET = "\033[0m"


class _JSONFormatter(logging.Formatter):
    """One JSON object per line: ``ts``, ``level``, ``logger``, ``msg`` and,
    for records raised with a traceback, a redacted ``exception``."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info and record.exc_info[1]:
            # Tracebacks bypass the handler filter, so they are masked here.
            entry["exception"] = redact(self.formatException(record.exc_info))
        return json.dumps(entry, default=str)


class _HumanFormatter(logging.Formatter):
    """``HH:MM:SS [LEVEL  ] logger: message``, coloured on a terminal."""

    def __init__(self, colour: Optional[bool] = None):
        super().__init__()
        self.colour = sys.stderr.isatty() if colour is None else colour

    def format(self, record: logging.LogRecord) -> str:
        stamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        level = f"[{record.levelname:<7}]"
        if self.colour:
            level = f"{_LEVEL_COLOURS.get(record.levelname, '')}{level}{_RESET}"
        return f"{stamp} {level} {record.name}: {record.getMessage()}"


def _attach(root: logging.Logger, handler: logging.Handler,
            formatter: logging.Formatter, redaction: logging.Filter) -> None:
    handler.setFormatter(formatter)
    handler.addFilter(redaction)
    root.addHandler(handler)


def setup_logging(
    level: str = "INFO",
    fmt: str = "human",
    log_file: Optional[str] = None,
) -> None:
    """Route wallet logs to stderr and, optionally, a JSON log file.

    Existing root handlers are replaced, so calling this twice does not
    duplicate output.  Unknown level names fall back to INFO.  Every
    handler shares one ``KeyRedactionFilter``; the file handler always
    writes JSON whatever *fmt* the console uses.
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    root.handlers.clear()

    redaction = KeyRedactionFilter()
    console_fmt = _JSONFormatter() if fmt == "json" else _HumanFormatter()
    _attach(root, logging.StreamHandler(sys.stderr), console_fmt, redaction)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        _attach(root, logging.FileHandler(str(path), encoding="utf-8"), _JSONFormatter(), redaction)
