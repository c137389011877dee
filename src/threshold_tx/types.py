"""Core types for the threshold-tx protocol.

Protocol objects (member sets, envelopes, signatures, signed transactions)
are frozen: once built they are shared between independent signers and the
submission path, and cancellation of a network call never leaves them half
updated. Only the in-memory ledger state at the bottom is mutable.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .type_tag import TypeTag


@dataclass(frozen=True)
class MemberSet:
    public_keys: tuple[bytes, ...]
    threshold: int

    @property
    def size(self) -> int:
        return len(self.public_keys)


@dataclass(frozen=True)
class ThresholdIdentity:
    member_set: MemberSet
    address: bytes


@dataclass(frozen=True)
class ModuleId:
    address: bytes
    name: str


@dataclass(frozen=True)
class Action:
    module: ModuleId
    function: str
    type_arguments: tuple[TypeTag, ...] = ()
    arguments: tuple[bytes, ...] = ()


@dataclass(frozen=True)
class MultisigPayload:
    """An action marked as threshold-authorized, carrying the sender's own address."""

    multisig_address: bytes
    action: Optional[Action]


@dataclass(frozen=True)
class TransactionEnvelope:
    sender: bytes
    sequence_number: int
    payload: MultisigPayload
    max_gas_units: int
    gas_unit_price: int
    expiration_timestamp: int
    network_id: int


@dataclass(frozen=True)
class PartialSignature:
    member_index: int
    signature: bytes


@dataclass(frozen=True)
class AggregatedSignature:
    bitmap: tuple[int, ...]
    signatures: tuple[bytes, ...]

    @property
    def signature_bytes(self) -> bytes:
        return b"".join(self.signatures)


@dataclass(frozen=True)
class SignedTransaction:
    envelope: TransactionEnvelope
    member_set: MemberSet
    signature: AggregatedSignature


class TxStatus(Enum):
    PENDING = "pending"
    COMMITTED = "committed"
    EXPIRED = "expired"
    REJECTED = "rejected"


TERMINAL_STATUSES = frozenset({TxStatus.COMMITTED, TxStatus.EXPIRED, TxStatus.REJECTED})


@dataclass(frozen=True)
class SubmissionResult:
    transaction_hash: bytes
    status: TxStatus
    reason: Optional[str] = None

    @property
    def terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def hash_hex(self) -> str:
        return "0x" + self.transaction_hash.hex()


# --- In-memory ledger state ---


@dataclass
class AccountState:
    address: bytes
    balance: int = 0
    sequence_number: int = 0


@dataclass
class LedgerState:
    network_id: int
    accounts: dict[bytes, AccountState] = field(default_factory=dict)
    total_gas_burned: int = 0
    block_height: int = 0
    timestamp: int = 0
