"""Interfaces of the ledger node and the funding service."""

from __future__ import annotations

from typing import Optional, Protocol

from ..types import SignedTransaction, SubmissionResult


class LedgerService(Protocol):
    """What the submission tracker needs from a ledger node."""

    async def get_network_id(self) -> int:
        ...

    async def submit(self, signed: SignedTransaction) -> SubmissionResult:
        """Hand a signed transaction to the node once.

        Returns `PENDING` when admitted, `REJECTED` with the node's reason when
        validation fails. Transport failures raise `SUBMISSION_FAILED`.
        """
        ...

    async def get_status(self, transaction_hash: bytes) -> Optional[SubmissionResult]:
        """Current status, or None when the node does not know the hash yet."""
        ...


class FundingService(Protocol):
    async def fund(self, address: bytes, amount: int) -> None:
        ...
