"""State transition entrypoints for the in-memory reference ledger."""

from __future__ import annotations

from typing import Optional

from .aggregator import verify_aggregated
from .config import MAX_GAS_UNITS_BOUND
from .encoding import signing_message
from .errors import LedgerRejection, LedgerStatus, ProtocolError
from .identity import derive_address
from .tx import coin as tx_coin
from .types import LedgerState, SignedTransaction

MAX_SEQUENCE_GAP = 100


class TransitionResult:
    """Thin wrapper for verify/apply results."""

    def __init__(self, ok: bool, error: Optional[LedgerRejection] = None):
        self.ok = ok
        self.error = error

    @classmethod
    def success(cls) -> "TransitionResult":
        return cls(True, None)

    @classmethod
    def failure(cls, error: LedgerRejection) -> "TransitionResult":
        return cls(False, error)

    @property
    def reason(self) -> Optional[str]:
        return self.error.status.value if self.error else None


def _verify_authenticator(signed: SignedTransaction) -> None:
    env = signed.envelope
    try:
        address = derive_address(signed.member_set)
    except ProtocolError as exc:
        raise LedgerRejection(LedgerStatus.INVALID_AUTH_KEY, exc.message) from exc
    if address != env.sender:
        raise LedgerRejection(LedgerStatus.INVALID_AUTH_KEY, "member set does not own sender")
    if env.payload.multisig_address != env.sender:
        raise LedgerRejection(LedgerStatus.INVALID_AUTH_KEY, "multisig address differs from sender")
    try:
        challenge = signing_message(env)
    except ProtocolError as exc:
        raise LedgerRejection(LedgerStatus.MALFORMED_TRANSACTION, exc.message) from exc
    if not verify_aggregated(signed.member_set, signed.signature, challenge):
        raise LedgerRejection(LedgerStatus.INVALID_SIGNATURE, "threshold signature invalid")


def _verify_common(state: LedgerState, signed: SignedTransaction, now: float) -> None:
    env = signed.envelope
    if env.network_id != state.network_id:
        raise LedgerRejection(LedgerStatus.BAD_CHAIN_ID, "network id mismatch")

    if env.expiration_timestamp <= now:
        raise LedgerRejection(LedgerStatus.TRANSACTION_EXPIRED, "transaction expired")

    if env.max_gas_units > MAX_GAS_UNITS_BOUND:
        raise LedgerRejection(
            LedgerStatus.MAX_GAS_UNITS_EXCEEDS_MAX_GAS_UNITS_BOUND, "max gas units too high"
        )

    _verify_authenticator(signed)

    sender = state.accounts.get(env.sender)
    if sender is None:
        raise LedgerRejection(LedgerStatus.SENDING_ACCOUNT_DOES_NOT_EXIST, "sender not found")

    if env.sequence_number < sender.sequence_number:
        raise LedgerRejection(LedgerStatus.SEQUENCE_NUMBER_TOO_OLD, "sequence number too old")
    if env.sequence_number > sender.sequence_number + MAX_SEQUENCE_GAP:
        raise LedgerRejection(LedgerStatus.SEQUENCE_NUMBER_TOO_NEW, "sequence number too new")

    if sender.balance < env.max_gas_units * env.gas_unit_price:
        raise LedgerRejection(
            LedgerStatus.INSUFFICIENT_BALANCE_FOR_TRANSACTION_FEE, "cannot cover max gas fee"
        )


def verify_tx(state: LedgerState, signed: SignedTransaction, now: float) -> TransitionResult:
    """Admission checks (sequence numbers ahead of the account are allowed)."""
    try:
        _verify_common(state, signed, now)
        tx_coin.verify(state, signed)
        return TransitionResult.success()
    except LedgerRejection as exc:
        return TransitionResult.failure(exc)


def _require_strict_sequence(account_seq: int, tx_seq: int) -> None:
    if tx_seq < account_seq:
        raise LedgerRejection(LedgerStatus.SEQUENCE_NUMBER_TOO_OLD, "sequence number too old")
    if tx_seq > account_seq:
        raise LedgerRejection(LedgerStatus.SEQUENCE_NUMBER_TOO_NEW, "sequence number too new")


def apply_tx(
    state: LedgerState, signed: SignedTransaction, now: float
) -> tuple[LedgerState, TransitionResult]:
    """Execute a transaction.

    Failed-tx semantics: on any failure the state is returned unchanged (no
    gas charged, sequence number not advanced).
    """
    env = signed.envelope
    try:
        _verify_common(state, signed, now)
        _require_strict_sequence(state.accounts[env.sender].sequence_number, env.sequence_number)
        tx_coin.verify(state, signed)
    except LedgerRejection as exc:
        return state, TransitionResult.failure(exc)

    try:
        working = tx_coin.apply(state, signed)
    except LedgerRejection as exc:
        return state, TransitionResult.failure(exc)

    fee = tx_coin.gas_units(signed) * env.gas_unit_price
    sender = working.accounts[env.sender]
    sender.balance -= fee
    sender.sequence_number += 1
    working.total_gas_burned += fee
    return working, TransitionResult.success()
