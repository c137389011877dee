"""Single-party keypairs."""

from __future__ import annotations

import pytest

from threshold_tx.crypto.keys import Keypair, verify_signature
from threshold_tx.errors import ErrorCode, ProtocolError
from threshold_tx.test_accounts import ALICE, BOB


def test_generated_keys_are_independent() -> None:
    a = Keypair.generate()
    b = Keypair.generate()
    assert len(a.public_key) == 32
    assert a.public_key != b.public_key


def test_hex_round_trip_keeps_public_key() -> None:
    restored = Keypair.from_hex(ALICE.to_hex())
    assert restored.to_hex().startswith("0x")
    assert restored.public_key == ALICE.public_key
    assert Keypair.from_hex(ALICE.to_hex()[2:]).public_key == ALICE.public_key


def test_private_key_not_in_repr() -> None:
    assert ALICE.private_key_bytes().hex() not in repr(ALICE)


@pytest.mark.parametrize("value", ["0x1234", "zz" * 32, ""])
def test_from_hex_rejects_bad_input(value: str) -> None:
    with pytest.raises(ProtocolError) as exc:
        Keypair.from_hex(value)
    assert exc.value.code == ErrorCode.INVALID_FORMAT


def test_sign_and_verify() -> None:
    msg = b"threshold"
    sig = ALICE.sign(msg)
    assert len(sig) == 64
    assert verify_signature(ALICE.public_key, msg, sig)
    assert not verify_signature(BOB.public_key, msg, sig)
    assert not verify_signature(ALICE.public_key, b"other", sig)
    assert not verify_signature(ALICE.public_key, msg, sig[:63])


def test_signing_is_deterministic() -> None:
    assert ALICE.sign(b"m") == ALICE.sign(b"m")
