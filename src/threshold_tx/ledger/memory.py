"""In-memory reference ledger.

Admits signed transactions into a mempool and executes them in blocks
against a `LedgerState`, using the same admission and execution rules as
`state_transition`. Used for tests and offline runs of the full flow.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from ..config import CHAIN_ID_LOCAL, U64_MAX
from ..encoding import transaction_hash
from ..errors import LedgerStatus
from ..state_digest import compute_state_digest
from ..state_transition import apply_tx, verify_tx
from ..types import AccountState, LedgerState, SignedTransaction, SubmissionResult, TxStatus

logger = logging.getLogger(__name__)


class InMemoryLedger:
    """LedgerService and FundingService over an in-process state.

    With ``auto_commit`` every status query first produces a block from the
    mempool, so a submitted transaction is seen as pending once and then
    reaches its final status on the next poll.
    """

    def __init__(
        self,
        network_id: int = CHAIN_ID_LOCAL,
        clock: Callable[[], float] = time.time,
        auto_commit: bool = True,
    ):
        self.state = LedgerState(network_id=network_id)
        self.auto_commit = auto_commit
        self._clock = clock
        self._mempool: dict[bytes, SignedTransaction] = {}
        self._results: dict[bytes, SubmissionResult] = {}
        self.submit_calls = 0
        self.status_calls = 0

    # --- LedgerService ---

    async def get_network_id(self) -> int:
        return self.state.network_id

    async def submit(self, signed: SignedTransaction) -> SubmissionResult:
        self.submit_calls += 1
        tx_hash = transaction_hash(signed)

        if tx_hash in self._mempool:
            return self._results[tx_hash]

        check = verify_tx(self.state, signed, self._clock())
        if not check.ok:
            logger.info("rejected %s: %s", tx_hash.hex(), check.error)
            return self._record(SubmissionResult(tx_hash, TxStatus.REJECTED, check.reason))

        env = signed.envelope
        for queued in self._mempool.values():
            q = queued.envelope
            if q.sender == env.sender and q.sequence_number == env.sequence_number:
                logger.info("rejected %s: sequence %d already queued", tx_hash.hex(), env.sequence_number)
                return self._record(
                    SubmissionResult(
                        tx_hash, TxStatus.REJECTED, LedgerStatus.DUPLICATE_SEQUENCE_NUMBER.value
                    )
                )

        self._mempool[tx_hash] = signed
        logger.debug("admitted %s (seq %d)", tx_hash.hex(), env.sequence_number)
        return self._record(SubmissionResult(tx_hash, TxStatus.PENDING))

    async def get_status(self, transaction_hash: bytes) -> Optional[SubmissionResult]:
        self.status_calls += 1
        if self.auto_commit and self._mempool:
            self.commit_pending()
        return self._results.get(transaction_hash)

    # --- FundingService ---

    async def fund(self, address: bytes, amount: int) -> None:
        if amount < 0:
            raise ValueError("amount must be non-negative")
        account = self.state.accounts.get(address)
        if account is None:
            account = AccountState(address=address)
            self.state.accounts[address] = account
        if account.balance + amount > U64_MAX:
            raise ValueError("balance overflow")
        account.balance += amount
        logger.debug("funded %s with %d", address.hex(), amount)

    # --- Block production ---

    def commit_pending(self) -> list[SubmissionResult]:
        """Execute the mempool as one block; returns the finalized results.

        Transactions whose sequence number is still ahead of the account stay
        queued for a later block.
        """
        now = self._clock()
        finalized = []
        queued = sorted(
            self._mempool.items(),
            key=lambda item: (item[1].envelope.sender, item[1].envelope.sequence_number),
        )
        for tx_hash, signed in queued:
            next_state, result = apply_tx(self.state, signed, now)
            if result.ok:
                self.state = next_state
                outcome = SubmissionResult(tx_hash, TxStatus.COMMITTED)
            elif result.error.status == LedgerStatus.SEQUENCE_NUMBER_TOO_NEW:
                continue
            elif result.error.status == LedgerStatus.TRANSACTION_EXPIRED:
                outcome = SubmissionResult(tx_hash, TxStatus.EXPIRED, result.reason)
            else:
                outcome = SubmissionResult(tx_hash, TxStatus.REJECTED, result.reason)
            del self._mempool[tx_hash]
            self._record(outcome)
            finalized.append(outcome)
            logger.info("%s %s", outcome.status.value, tx_hash.hex())

        self.state.block_height += 1
        self.state.timestamp = int(now)
        return finalized

    def _record(self, result: SubmissionResult) -> SubmissionResult:
        # A committed hash keeps its status; later resubmissions only get a reply.
        previous = self._results.get(result.transaction_hash)
        if previous is None or previous.status != TxStatus.COMMITTED:
            self._results[result.transaction_hash] = result
        return result

    # --- Queries ---

    @property
    def pending_count(self) -> int:
        return len(self._mempool)

    def balance(self, address: bytes) -> int:
        account = self.state.accounts.get(address)
        return account.balance if account else 0

    def sequence_number(self, address: bytes) -> int:
        account = self.state.accounts.get(address)
        return account.sequence_number if account else 0

    def state_digest(self) -> str:
        return compute_state_digest(self.state)
