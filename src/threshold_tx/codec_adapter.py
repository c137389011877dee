"""Convert envelopes and signed transactions to the node's REST JSON form.

Integers wider than 32 bits are rendered as decimal strings and byte values
as `0x`-prefixed hex, matching what the REST API returns for user
transactions. Entry function arguments are already canonically encoded, so
they are rendered as hex of their encoded bytes.
"""

from __future__ import annotations

from typing import Any

from .address import format_address, format_short, parse_address
from .encoding import encode_bitmap
from .errors import ErrorCode, ProtocolError
from .type_tag import TypeTag
from .types import (
    Action,
    ModuleId,
    MultisigPayload,
    SignedTransaction,
    TransactionEnvelope,
)

MULTISIG_PAYLOAD_TYPE = "multisig_payload"
ENTRY_FUNCTION_PAYLOAD_TYPE = "entry_function_payload"
MULTI_ED25519_SIGNATURE_TYPE = "multi_ed25519_signature"


def _hex(b: bytes) -> str:
    return "0x" + b.hex()


def _unhex(v: str) -> bytes:
    try:
        return bytes.fromhex(v[2:] if v.startswith("0x") else v)
    except ValueError as exc:
        raise ProtocolError(ErrorCode.INVALID_FORMAT, f"invalid hex value {v!r}") from exc


def action_to_json(action: Action) -> dict[str, Any]:
    module = action.module
    return {
        "type": ENTRY_FUNCTION_PAYLOAD_TYPE,
        "function": f"{format_short(module.address)}::{module.name}::{action.function}",
        "type_arguments": [str(t) for t in action.type_arguments],
        "arguments": [_hex(a) for a in action.arguments],
    }


def action_from_json(data: dict[str, Any]) -> Action:
    parts = data["function"].split("::")
    if len(parts) != 3:
        raise ProtocolError(ErrorCode.INVALID_FORMAT, f"invalid function id {data['function']!r}")
    return Action(
        module=ModuleId(parse_address(parts[0]), parts[1]),
        function=parts[2],
        type_arguments=tuple(TypeTag.from_str(t) for t in data.get("type_arguments", [])),
        arguments=tuple(_unhex(a) for a in data.get("arguments", [])),
    )


def envelope_to_json(env: TransactionEnvelope) -> dict[str, Any]:
    payload = env.payload
    return {
        "sender": format_address(env.sender),
        "sequence_number": str(env.sequence_number),
        "max_gas_amount": str(env.max_gas_units),
        "gas_unit_price": str(env.gas_unit_price),
        "expiration_timestamp_secs": str(env.expiration_timestamp),
        "chain_id": env.network_id,
        "payload": {
            "type": MULTISIG_PAYLOAD_TYPE,
            "multisig_address": format_address(payload.multisig_address),
            "transaction_payload": (
                action_to_json(payload.action) if payload.action is not None else None
            ),
        },
    }


def envelope_from_json(data: dict[str, Any]) -> TransactionEnvelope:
    payload = data["payload"]
    if payload.get("type") != MULTISIG_PAYLOAD_TYPE:
        raise ProtocolError(ErrorCode.INVALID_FORMAT, f"unsupported payload {payload.get('type')!r}")
    inner = payload.get("transaction_payload")
    return TransactionEnvelope(
        sender=parse_address(data["sender"]),
        sequence_number=int(data["sequence_number"]),
        payload=MultisigPayload(
            multisig_address=parse_address(payload["multisig_address"]),
            action=action_from_json(inner) if inner is not None else None,
        ),
        max_gas_units=int(data["max_gas_amount"]),
        gas_unit_price=int(data["gas_unit_price"]),
        expiration_timestamp=int(data["expiration_timestamp_secs"]),
        network_id=int(data["chain_id"]),
    )


def signed_to_json(signed: SignedTransaction) -> dict[str, Any]:
    out = envelope_to_json(signed.envelope)
    out["signature"] = {
        "type": MULTI_ED25519_SIGNATURE_TYPE,
        "public_keys": [_hex(pk) for pk in signed.member_set.public_keys],
        "signatures": [_hex(s) for s in signed.signature.signatures],
        "threshold": signed.member_set.threshold,
        "bitmap": _hex(encode_bitmap(signed.signature.bitmap)),
    }
    return out
