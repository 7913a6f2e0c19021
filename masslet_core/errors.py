"""
Error taxonomy for the Masslet wallet core.

Every failure the core surfaces to its caller is a ``MassletError`` with a
stable ``code`` string, so the presentation layer can branch on it without
parsing messages.  Codec and validation failures also derive from
``ValueError``.

Only ``NetworkError`` is ever recovered inside the core (by endpoint
failover in ``masslet_core.rpc``).  Everything else propagates.
"""

from __future__ import annotations

from typing import Any


class MassletError(Exception):
    """Base exception for all wallet-core failures."""

    code: str = "MassletError"

    def __init__(self, message: str, details: Any | None = None):
        self.message = message
        self.details = details
        super().__init__(message)

    def to_dict(self) -> dict:
        """JSON-serialisable form for the UI layer."""
        result: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details is not None:
            result["details"] = self.details
        return result


# ── Key material / codecs ────────────────────────────────────────────

class InvalidMnemonicError(MassletError, ValueError):
    code = "InvalidMnemonic"


class InvalidAddressError(MassletError, ValueError):
    code = "InvalidAddress"


class InvalidKeyLengthError(MassletError, ValueError):
    code = "InvalidKeyLength"


class MalformedOperationError(MassletError, ValueError):
    code = "MalformedOperation"


class InvalidAmountError(MassletError, ValueError):
    code = "InvalidAmount"


class SigningError(MassletError):
    code = "SigningError"


class KeystoreError(MassletError):
    """Encrypted key blob could not be opened (wrong password or corrupt)."""
    code = "KeystoreError"


# ── Orchestration ────────────────────────────────────────────────────

class StatusUnavailableError(MassletError):
    code = "StatusUnavailable"


class SubmissionRejectedError(MassletError):
    code = "SubmissionRejected"


class OperationCancelledError(MassletError):
    code = "OperationCancelled"

    def __init__(self, message: str = "operation cancelled", details: Any | None = None):
        super().__init__(message, details)


# ── Transport ────────────────────────────────────────────────────────

class NetworkError(MassletError):
    """A single endpoint attempt failed.  Non-fatal: the client fails over."""

    code = "NetworkError"

    def __init__(self, endpoint: str, message: str):
        self.endpoint = endpoint
        super().__init__(f"{endpoint}: {message}", {"endpoint": endpoint})


class AllEndpointsFailedError(MassletError):
    """Every configured endpoint was tried without obtaining a result."""

    code = "AllEndpointsFailed"

    def __init__(self, method: str, attempts: list[NetworkError]):
        self.method = method
        self.attempts = list(attempts)
        self.last_error = attempts[-1].message if attempts else "no endpoints tried"
        super().__init__(
            f"All RPC endpoints failed for {method}: {self.last_error}",
            {"method": method, "endpoints": [a.endpoint for a in attempts]},
        )
