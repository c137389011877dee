"""REST JSON rendering of transactions."""

from __future__ import annotations

import json

import pytest

from threshold_tx.codec_adapter import envelope_from_json, envelope_to_json, signed_to_json
from threshold_tx.errors import ProtocolError


def test_envelope_json(signed_transfer) -> None:
    env = signed_transfer.envelope
    data = envelope_to_json(env)
    assert data["sender"] == "0x" + env.sender.hex()
    assert data["sequence_number"] == "0"
    assert data["expiration_timestamp_secs"] == str(env.expiration_timestamp)
    payload = data["payload"]
    assert payload["type"] == "multisig_payload"
    inner = payload["transaction_payload"]
    assert inner["function"] == "0x1::coin::transfer"
    assert inner["type_arguments"] == ["0x1::aptos_coin::AptosCoin"]
    assert envelope_from_json(json.loads(json.dumps(data))) == env


def test_signed_json(signed_transfer) -> None:
    sig = signed_to_json(signed_transfer)["signature"]
    assert sig["type"] == "multi_ed25519_signature"
    assert sig["threshold"] == 2
    assert len(sig["public_keys"]) == 3
    assert len(sig["signatures"]) == 2
    assert sig["bitmap"] == "0xa0000000"


def test_unknown_payload_type(signed_transfer) -> None:
    data = envelope_to_json(signed_transfer.envelope)
    data["payload"]["type"] = "entry_function_payload"
    with pytest.raises(ProtocolError):
        envelope_from_json(data)
