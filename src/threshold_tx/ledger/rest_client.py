"""HTTP clients for a ledger node's REST API and its faucet."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Optional

import aiohttp

from ..address import format_address
from ..encoding import encode_signed_transaction, transaction_hash
from ..errors import ErrorCode, ProtocolError
from ..settings import ClientConfig
from ..types import SignedTransaction, SubmissionResult, TxStatus

logger = logging.getLogger(__name__)

BCS_SIGNED_TRANSACTION = "application/x.aptos.signed_transaction+bcs"


def _transport_error(action: str, exc: BaseException) -> ProtocolError:
    return ProtocolError(ErrorCode.SUBMISSION_FAILED, f"{action} failed: {exc!r}")


class _HttpClient:
    """Owns one aiohttp session; usable as an async context manager."""

    def __init__(self, config: ClientConfig):
        self.config = config
        self.session: Optional[aiohttp.ClientSession] = None

    async def connect(self) -> None:
        """Initialize HTTP session."""
        if self.session is None:
            timeout = aiohttp.ClientTimeout(total=self.config.request_timeout)
            self.session = aiohttp.ClientSession(timeout=timeout)

    async def close(self) -> None:
        """Close HTTP session."""
        if self.session:
            await self.session.close()
            self.session = None

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def _session(self) -> aiohttp.ClientSession:
        await self.connect()
        return self.session


class RestLedgerClient(_HttpClient):
    """LedgerService backed by a node's REST API.

    Signed transactions are posted in their canonical binary form; each call
    makes exactly one request.
    """

    @property
    def base_url(self) -> str:
        return self.config.node_url.rstrip("/")

    async def get_network_id(self) -> int:
        session = await self._session()
        try:
            async with session.get(f"{self.base_url}/") as resp:
                if resp.status >= 400:
                    raise ProtocolError(
                        ErrorCode.SUBMISSION_FAILED, f"ledger info returned HTTP {resp.status}"
                    )
                data = await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise _transport_error("ledger info", exc) from exc
        return int(data["chain_id"])

    async def submit(self, signed: SignedTransaction) -> SubmissionResult:
        body = encode_signed_transaction(signed)
        tx_hash = transaction_hash(signed)
        session = await self._session()
        try:
            async with session.post(
                f"{self.base_url}/transactions",
                data=body,
                headers={"Content-Type": BCS_SIGNED_TRANSACTION},
            ) as resp:
                status = resp.status
                data = _parse_json(await resp.text())
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise _transport_error("submit", exc) from exc

        if status >= 500:
            raise ProtocolError(ErrorCode.SUBMISSION_FAILED, f"submit returned HTTP {status}")
        if status >= 400:
            reason = _error_message(data, status)
            logger.info("node rejected %s: %s", tx_hash.hex(), reason)
            return SubmissionResult(tx_hash, TxStatus.REJECTED, reason)

        node_hash = data.get("hash") if isinstance(data, dict) else None
        if node_hash and bytes.fromhex(node_hash.removeprefix("0x")) != tx_hash:
            logger.warning("node reported hash %s, computed 0x%s", node_hash, tx_hash.hex())
        logger.debug("submitted 0x%s", tx_hash.hex())
        return SubmissionResult(tx_hash, TxStatus.PENDING)

    async def get_status(self, transaction_hash: bytes) -> Optional[SubmissionResult]:
        session = await self._session()
        url = f"{self.base_url}/transactions/by_hash/0x{transaction_hash.hex()}"
        try:
            async with session.get(url) as resp:
                if resp.status == 404:
                    return None
                if resp.status >= 400:
                    raise ProtocolError(
                        ErrorCode.SUBMISSION_FAILED, f"status query returned HTTP {resp.status}"
                    )
                data = await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise _transport_error("status query", exc) from exc
        return _status_from_json(transaction_hash, data)

    async def account_sequence_number(self, address: bytes) -> int:
        session = await self._session()
        url = f"{self.base_url}/accounts/{format_address(address)}"
        try:
            async with session.get(url) as resp:
                if resp.status == 404:
                    return 0
                if resp.status >= 400:
                    raise ProtocolError(
                        ErrorCode.SUBMISSION_FAILED, f"account query returned HTTP {resp.status}"
                    )
                data = await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise _transport_error("account query", exc) from exc
        return int(data["sequence_number"])


def _parse_json(text: str) -> Any:
    try:
        return json.loads(text)
    except ValueError:
        return None


def _error_message(data: Any, status: int) -> str:
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return f"HTTP {status}"


def _status_from_json(tx_hash: bytes, data: dict[str, Any]) -> SubmissionResult:
    if data.get("type") == "pending_transaction":
        return SubmissionResult(tx_hash, TxStatus.PENDING)
    if data.get("success"):
        return SubmissionResult(tx_hash, TxStatus.COMMITTED)
    return SubmissionResult(tx_hash, TxStatus.REJECTED, data.get("vm_status"))


class FaucetClient(_HttpClient):
    """FundingService backed by a faucet's mint endpoint."""

    async def fund(self, address: bytes, amount: int) -> None:
        session = await self._session()
        url = f"{self.config.faucet_url.rstrip('/')}/mint"
        params = {"amount": str(amount), "address": format_address(address)}
        try:
            async with session.post(url, params=params) as resp:
                if resp.status >= 400:
                    text = await resp.text()
                    raise ProtocolError(
                        ErrorCode.SUBMISSION_FAILED, f"faucet returned HTTP {resp.status}: {text}"
                    )
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise _transport_error("fund", exc) from exc
        logger.info("funded %s with %d", format_address(address), amount)
