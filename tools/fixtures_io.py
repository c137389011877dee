"""Helpers to serialize ledger states and signed transactions into vector files."""

from __future__ import annotations

from typing import Any

from threshold_tx.codec_adapter import signed_to_json
from threshold_tx.encoding import encode_envelope, encode_signed_transaction, transaction_hash
from threshold_tx.state_digest import compute_state_digest
from threshold_tx.types import AccountState, LedgerState, SignedTransaction


def _bytes_to_hex(v: bytes) -> str:
    return v.hex()


def _hex_to_bytes(v: str) -> bytes:
    return bytes.fromhex(v)


def state_to_json(state: LedgerState) -> dict[str, Any]:
    return {
        "network_id": state.network_id,
        "total_gas_burned": state.total_gas_burned,
        "block_height": state.block_height,
        "timestamp": state.timestamp,
        "accounts": [
            {
                "address": _bytes_to_hex(a.address),
                "balance": a.balance,
                "sequence_number": a.sequence_number,
            }
            for _, a in sorted(state.accounts.items())
        ],
        "state_digest": compute_state_digest(state),
    }


def state_from_json(data: dict[str, Any]) -> LedgerState:
    state = LedgerState(
        network_id=int(data["network_id"]),
        total_gas_burned=int(data.get("total_gas_burned", 0)),
        block_height=int(data.get("block_height", 0)),
        timestamp=int(data.get("timestamp", 0)),
    )
    for a in data.get("accounts", []):
        addr = _hex_to_bytes(a["address"])
        state.accounts[addr] = AccountState(
            address=addr,
            balance=int(a.get("balance", 0)),
            sequence_number=int(a.get("sequence_number", 0)),
        )
    return state


def signed_tx_to_json(signed: SignedTransaction) -> dict[str, Any]:
    out = signed_to_json(signed)
    out["canonical_hex"] = _bytes_to_hex(encode_envelope(signed.envelope))
    out["wire_hex"] = _bytes_to_hex(encode_signed_transaction(signed))
    out["hash"] = _bytes_to_hex(transaction_hash(signed))
    return out
