"""
JSON-RPC 2.0 client with ordered endpoint failover.

Endpoints are tried strictly in list order, one request each, until one
returns a ``result``.  A JSON-RPC ``error`` object, a timeout, a refused
connection or an unparsable body all count as a failed attempt for that
endpoint only; the next endpoint is then tried.  When the list is
exhausted the call fails with ``AllEndpointsFailedError``.  There is no
racing and no retry of an endpoint within one call, so the worst case
latency of a call is ``len(endpoints) * timeout``.

Usage:
    async with RpcClient(["https://node-a/api/v2", "https://node-b/api/v2"]) as rpc:
        status = await rpc.call("get_status", [])
"""

from __future__ import annotations

import asyncio
import contextlib
import itertools
import json
import logging
from typing import Any, Sequence

import aiohttp

from masslet_core.errors import (
    AllEndpointsFailedError,
    NetworkError,
    OperationCancelledError,
)

logger = logging.getLogger("masslet_rpc")

JSONRPC_VERSION = "2.0"
DEFAULT_TIMEOUT = 10.0


class CancelToken:
    """Cancels every RPC attempt of one top-level wallet call."""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    async def wait(self) -> None:
        await self._event.wait()


class RpcClient:
    """Ordered-failover JSON-RPC transport.

    The endpoint list is fixed at construction; separate clients never
    share state, so tests can point each at its own set of nodes.
    """

    def __init__(
        self,
        endpoints: Sequence[str],
        timeout: float = DEFAULT_TIMEOUT,
        jsonrpc_version: str = JSONRPC_VERSION,
        session: aiohttp.ClientSession | None = None,
    ):
        self.endpoints: tuple[str, ...] = tuple(e for e in endpoints if e)
        if not self.endpoints:
            raise ValueError("RpcClient needs at least one endpoint")
        if timeout <= 0:
            raise ValueError("timeout must be positive")
        self.timeout = float(timeout)
        self.jsonrpc_version = jsonrpc_version
        self._session = session
        self._owns_session = session is None
        self._ids = itertools.count(1)

    @classmethod
    def from_config(cls, rpc_cfg: Any) -> RpcClient:
        return cls(
            rpc_cfg.endpoints,
            timeout=rpc_cfg.timeout_seconds,
            jsonrpc_version=rpc_cfg.jsonrpc_version,
        )

    # ── session lifecycle ────────────────────────────────────────

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is not None and not self._session.closed:
            return self._session
        self._session = aiohttp.ClientSession(headers={"Content-Type": "application/json"})
        self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> RpcClient:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    # ── calls ────────────────────────────────────────────────────

    async def call(
        self,
        method: str,
        params: Any = None,
        cancel: CancelToken | None = None,
    ) -> Any:
        """Return the first ``result`` obtained for *method*."""
        attempts: list[NetworkError] = []
        for endpoint in self.endpoints:
            if cancel is not None and cancel.cancelled:
                raise OperationCancelledError(f"{method} cancelled")
            try:
                result = await self._attempt_cancellable(endpoint, method, params, cancel)
            except NetworkError as exc:
                attempts.append(exc)
                logger.warning(f"RPC {method} failed on {endpoint}: {exc.message}")
                continue
            logger.debug(f"RPC {method} answered by {endpoint}")
            return result

        err = AllEndpointsFailedError(method, attempts)
        logger.error(err.message)
        raise err

    async def _attempt_cancellable(
        self,
        endpoint: str,
        method: str,
        params: Any,
        cancel: CancelToken | None,
    ) -> Any:
        if cancel is None:
            return await self._attempt(endpoint, method, params)

        attempt = asyncio.ensure_future(self._attempt(endpoint, method, params))
        waiter = asyncio.ensure_future(cancel.wait())
        try:
            await asyncio.wait({attempt, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            attempt.cancel()
            raise
        finally:
            waiter.cancel()

        if attempt.done():
            return attempt.result()
        attempt.cancel()
        with contextlib.suppress(asyncio.CancelledError, NetworkError):
            await attempt
        logger.info(f"RPC {method} cancelled while waiting on {endpoint}")
        raise OperationCancelledError(f"{method} cancelled")

    async def _attempt(self, endpoint: str, method: str, params: Any) -> Any:
        """One POST to one endpoint.  Any failure becomes ``NetworkError``."""
        session = await self._ensure_session()
        body = {
            "jsonrpc": self.jsonrpc_version,
            "method": method,
            "params": params if params is not None else [],
            "id": next(self._ids),
        }
        try:
            async with session.post(
                endpoint,
                json=body,
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            ) as resp:
                status = resp.status
                raw = await resp.read()
        except asyncio.TimeoutError:
            raise NetworkError(endpoint, f"timed out after {self.timeout:g}s") from None
        except aiohttp.ClientError as exc:
            raise NetworkError(endpoint, f"{type(exc).__name__}: {exc}") from None

        try:
            payload = json.loads(raw) if raw.strip() else None
        except ValueError:
            payload = None
        if not isinstance(payload, dict):
            raise NetworkError(endpoint, f"HTTP {status}: unparsable response body")

        if "result" in payload:
            return payload["result"]
        error = payload.get("error")
        if error is not None:
            message = error.get("message") if isinstance(error, dict) else str(error)
            raise NetworkError(endpoint, f"RPC error: {message or 'Unknown error'}")
        raise NetworkError(endpoint, f"HTTP {status}: response carries no result")
