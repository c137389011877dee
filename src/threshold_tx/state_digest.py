"""Canonical ledger state digest (v1)."""
from __future__ import annotations

from .crypto.hash_algorithms import blake3_hash
from .types import LedgerState


def _u64_be(value: int) -> bytes:
    if value < 0:
        raise ValueError("u64 must be non-negative")
    return int(value).to_bytes(8, "big", signed=False)


def compute_state_digest(state: LedgerState) -> str:
    """Compute state digest v1 of the in-memory ledger.

    Fields are encoded in canonical order, accounts sorted by address, and
    hashed with BLAKE3-256.
    """
    buf = bytearray()
    buf += _u64_be(state.network_id)
    for value in (state.total_gas_burned, state.block_height, state.timestamp):
        buf += _u64_be(value)

    for addr in sorted(state.accounts):
        acc = state.accounts[addr]
        if len(addr) != 32:
            raise ValueError(f"address must be 32 bytes, got {len(addr)}")
        buf += addr
        buf += _u64_be(acc.balance)
        buf += _u64_be(acc.sequence_number)

    return blake3_hash(bytes(buf)).hex()
