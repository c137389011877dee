"""Submission and confirmation tracking against a LedgerService."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, Optional, Union

from .encoding import transaction_hash
from .errors import ErrorCode, LedgerStatus, ProtocolError
from .ledger.service import LedgerService
from .settings import TrackerConfig
from .transaction import is_expired
from .types import SignedTransaction, SubmissionResult, TxStatus

logger = logging.getLogger(__name__)


class SubmissionTracker:
    """Submit once, then poll until the transaction reaches a final status.

    Submission is never retried: a transport failure surfaces as
    ``SUBMISSION_FAILED`` and the caller decides. Status queries are retried
    until the configured deadline, after which ``CONFIRMATION_TIMEOUT`` is
    raised and the caller may query again later.
    """

    def __init__(
        self,
        ledger: LedgerService,
        config: Optional[TrackerConfig] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.ledger = ledger
        self.config = config or TrackerConfig()
        self._clock = clock

    async def submit(self, signed: SignedTransaction) -> SubmissionResult:
        if is_expired(signed.envelope, self._clock()):
            tx_hash = transaction_hash(signed)
            logger.info("0x%s expired before submission", tx_hash.hex())
            return SubmissionResult(
                tx_hash, TxStatus.EXPIRED, LedgerStatus.TRANSACTION_EXPIRED.value
            )

        result = await self.ledger.submit(signed)
        if result.status == TxStatus.REJECTED:
            logger.warning("%s rejected: %s", result.hash_hex, result.reason)
        else:
            logger.info("%s submitted (%s)", result.hash_hex, result.status.value)
        return result

    async def wait_for_transaction(
        self, target: Union[SubmissionResult, bytes]
    ) -> SubmissionResult:
        if isinstance(target, SubmissionResult):
            if target.terminal:
                return target
            tx_hash = target.transaction_hash
        else:
            tx_hash = target

        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.config.timeout
        interval = self.config.poll_interval
        polls = 0
        while True:
            remaining = deadline - loop.time()
            if remaining <= 0:
                break
            polls += 1
            try:
                status = await asyncio.wait_for(self.ledger.get_status(tx_hash), remaining)
            except asyncio.TimeoutError:
                break
            except ProtocolError as exc:
                if exc.code != ErrorCode.SUBMISSION_FAILED:
                    raise
                logger.warning("status query for 0x%s failed: %s", tx_hash.hex(), exc)
                status = None

            if status is not None and status.terminal:
                logger.info("0x%s %s after %d polls", tx_hash.hex(), status.status.value, polls)
                return status

            remaining = deadline - loop.time()
            if remaining <= 0:
                break
            await asyncio.sleep(min(interval, remaining))
            interval = self.config.next_interval(interval)

        raise ProtocolError(
            ErrorCode.CONFIRMATION_TIMEOUT,
            f"0x{tx_hash.hex()} not final after {self.config.timeout}s ({polls} polls)",
        )

    async def submit_and_wait(self, signed: SignedTransaction) -> SubmissionResult:
        result = await self.submit(signed)
        if result.terminal:
            return result
        return await self.wait_for_transaction(result)
