"""
Transaction orchestration: the wallet's only path from user intent to
the network.

``send`` runs a fixed sequence and either ends in a submitted operation
id or raises:

    ResolvePeriod -> BuildOperation -> Serialize+Sign -> Submit

Balance, history and network-info lookups are read-only; they degrade to
zero / empty / "Unknown" when every node fails, but never swallow codec
errors or cancellation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from masslet_core.address import compute_address, decode_address
from masslet_core.config import ChainConfig, HistoryConfig
from masslet_core.errors import (
    AllEndpointsFailedError,
    InvalidAddressError,
    StatusUnavailableError,
    SubmissionRejectedError,
)
from masslet_core.operation import Operation
from masslet_core.precision import format_mas, mas_to_nano
from masslet_core.responses import (
    NetworkStatus,
    TransferRecord,
    count_peers,
    extract_operation_ids,
    extract_period,
    first_address_info,
    format_timestamp,
    operation_parties,
    parse_address_balance,
    parse_balance_value,
    parse_operation,
    parse_status,
)
from masslet_core.rpc import CancelToken, RpcClient
from masslet_core.signer import SignedSubmission, sign
from masslet_core.wallet import KeyPair

logger = logging.getLogger("masslet_orchestrator")


@dataclass(frozen=True)
class SendResult:
    operation_id: str
    expire_period: int
    submission: SignedSubmission


def parse_submission_result(result: Any) -> str:
    """First element of the ``send_operations`` id list."""
    if isinstance(result, list) and result and result[0] not in (None, ""):
        return str(result[0])
    raise SubmissionRejectedError("Node returned no operation id", {"result": result})


class TransactionOrchestrator:
    """Builds, signs and submits transfers; resolves balances and history."""

    def __init__(
        self,
        rpc: RpcClient,
        chain: ChainConfig | None = None,
        history: HistoryConfig | None = None,
    ):
        self.rpc = rpc
        self.chain = chain or ChainConfig()
        self.history = history or HistoryConfig()

    # ── send ─────────────────────────────────────────────────────

    async def resolve_status(self, cancel: CancelToken | None = None) -> NetworkStatus:
        raw = await self.rpc.call("get_status", [], cancel=cancel)
        status = parse_status(raw)
        logger.info(
            f"Current period {status.current_period} "
            f"(from {status.period_source.value})"
        )
        return status

    def build_operation(
        self, current_period: int, to_address: str, amount_mas: Any,
    ) -> Operation:
        return Operation(
            fee=self.chain.fee_nano,
            expire_period=current_period + self.chain.expire_periods,
            recipient=to_address,
            amount=mas_to_nano(amount_mas),
        )

    async def send(
        self,
        key_pair: KeyPair,
        from_address: str,
        to_address: str,
        amount_mas: Any,
        chain_id: int | None = None,
        cancel: CancelToken | None = None,
    ) -> SendResult:
        # Local checks first: nothing touches the network with bad input.
        decode_address(from_address)
        if compute_address(key_pair.public_key) != from_address:
            raise InvalidAddressError("Sender address does not belong to the signing key")
        decode_address(to_address)
        mas_to_nano(amount_mas)

        status = await self.resolve_status(cancel)
        op = self.build_operation(status.current_period, to_address, amount_mas)
        submission = sign(op, key_pair, self.chain.chain_id if chain_id is None else chain_id)
        logger.debug(f"Serialized operation: {submission.serialized_content.hex()}")

        result = await self.rpc.call("send_operations", [submission.to_rpc()], cancel=cancel)
        operation_id = parse_submission_result(result)
        logger.info(
            f"Submitted operation {operation_id}: {op.amount} nano -> {to_address}, "
            f"expires at period {op.expire_period}"
        )
        return SendResult(operation_id, op.expire_period, submission)

    # ── balance ──────────────────────────────────────────────────

    async def resolve_balance(self, address: str, cancel: CancelToken | None = None) -> str:
        """Balance in MAS with 6 decimals; ``"0.000000"`` if unknown."""
        decode_address(address)

        balance = None
        try:
            result = await self.rpc.call("get_addresses", [[address]], cancel=cancel)
            balance = parse_address_balance(first_address_info(result))
        except AllEndpointsFailedError as exc:
            logger.warning(f"get_addresses unavailable for {address}: {exc.last_error}")

        if balance is None or balance.is_zero:
            try:
                fallback = parse_balance_value(
                    await self.rpc.call("get_balance", [address], cancel=cancel)
                )
            except AllEndpointsFailedError as exc:
                logger.warning(f"get_balance unavailable for {address}: {exc.last_error}")
            else:
                if fallback is not None and not fallback.is_zero:
                    balance = fallback

        if balance is None:
            return format_mas(Decimal(0))
        return balance.format()

    # ── history ──────────────────────────────────────────────────

    async def resolve_history(
        self, address: str, cancel: CancelToken | None = None,
    ) -> list[TransferRecord]:
        """Best-effort transfer list; empty when nothing can be found."""
        decode_address(address)

        records: list[TransferRecord] = []
        try:
            records = await self._history_from_metadata(address, cancel)
        except AllEndpointsFailedError as exc:
            logger.warning(f"Operation lookup failed for {address}: {exc.last_error}")
        if records:
            return records

        try:
            return await self._history_from_blocks(address, cancel)
        except (AllEndpointsFailedError, StatusUnavailableError) as exc:
            logger.warning(f"Block scan failed for {address}: {exc.message}")
            return []

    async def _history_from_metadata(
        self, address: str, cancel: CancelToken | None,
    ) -> list[TransferRecord]:
        result = await self.rpc.call("get_addresses", [[address]], cancel=cancel)
        op_ids = extract_operation_ids(first_address_info(result))
        if not op_ids:
            return []
        batch = op_ids[: self.history.max_operations]
        ops = await self.rpc.call("get_operations", [batch], cancel=cancel)
        if not isinstance(ops, list):
            return []
        fetched_at = format_timestamp()
        records = [parse_operation(wrapper, fetched_at) for wrapper in ops]
        return [r for r in records if r is not None]

    async def _history_from_blocks(
        self, address: str, cancel: CancelToken | None,
    ) -> list[TransferRecord]:
        status = parse_status(await self.rpc.call("get_status", [], cancel=cancel))
        end = status.current_period
        start = max(0, end - self.history.lookback_periods)
        blocks = await self.rpc.call(
            "get_graph_interval", [{"start": start, "end": end}], cancel=cancel,
        )
        if not isinstance(blocks, list):
            return []

        records: list[TransferRecord] = []
        for block in blocks:
            if not isinstance(block, dict) or not isinstance(block.get("operations"), list):
                continue
            timestamp = format_timestamp(block.get("timestamp"))
            for wrapper in block["operations"]:
                if not isinstance(wrapper, dict):
                    continue
                if address not in operation_parties(wrapper):
                    continue
                record = parse_operation(wrapper, timestamp, is_final=bool(block.get("is_final")))
                if record is not None:
                    records.append(record)
        return records

    # ── network info ─────────────────────────────────────────────

    async def network_info(self, cancel: CancelToken | None = None) -> dict:
        try:
            raw = await self.rpc.call("get_status", [], cancel=cancel)
        except AllEndpointsFailedError as exc:
            logger.warning(f"Network status unavailable: {exc.last_error}")
            raw = None
        if not isinstance(raw, dict):
            return {
                "network": self.chain.network_name,
                "block_height": "Unknown",
                "peers": 0,
                "version": "unknown",
            }
        found = extract_period(raw)
        version = raw.get("version")
        return {
            "network": self.chain.network_name,
            "block_height": found[0] if found is not None else "Unknown",
            "peers": count_peers(raw.get("connected_nodes")),
            "version": str(version) if version is not None else "unknown",
        }
