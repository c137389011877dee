"""Threshold identity derivation."""

from __future__ import annotations

import hashlib

import pytest

from threshold_tx.errors import ErrorCode, ProtocolError
from threshold_tx.identity import (
    derive_identity,
    member_index,
    member_set_from_bytes,
    multi_public_key_bytes,
    verify_address,
)
from threshold_tx.test_accounts import ALICE, BOB, CAROL, MALLORY

KEYS = [ALICE.public_key, BOB.public_key, CAROL.public_key]


def test_address_formula() -> None:
    identity = derive_identity(KEYS, 2)
    expected = hashlib.sha3_256(b"".join(KEYS) + bytes([2]) + b"\x01").digest()
    assert identity.address == expected
    assert len(identity.address) == 32


def test_derivation_is_deterministic() -> None:
    assert derive_identity(KEYS, 2) == derive_identity(list(KEYS), 2)


def test_member_order_changes_address() -> None:
    reordered = [CAROL.public_key, BOB.public_key, ALICE.public_key]
    assert derive_identity(KEYS, 2).address != derive_identity(reordered, 2).address


def test_threshold_changes_address() -> None:
    assert derive_identity(KEYS, 2).address != derive_identity(KEYS, 3).address


@pytest.mark.parametrize(
    "keys, threshold",
    [
        ([], 1),
        (KEYS, 0),
        (KEYS, 4),
        ([ALICE.public_key, ALICE.public_key], 1),
        ([b"\x01" * 31], 1),
        ([bytes([i]) * 32 for i in range(33)], 1),
    ],
    ids=["empty", "zero_threshold", "threshold_above_n", "duplicate", "short_key", "too_many"],
)
def test_invalid_member_sets(keys, threshold) -> None:
    with pytest.raises(ProtocolError) as exc:
        derive_identity(keys, threshold)
    assert exc.value.code == ErrorCode.INVALID_MEMBER_SET


def test_k_equals_n_and_single_member() -> None:
    derive_identity(KEYS, 3)
    derive_identity([ALICE.public_key], 1)


def test_thirty_two_members_allowed() -> None:
    keys = [bytes([i]) * 32 for i in range(32)]
    assert derive_identity(keys, 32).member_set.size == 32


def test_member_index() -> None:
    identity = derive_identity(KEYS, 2)
    assert member_index(identity, CAROL.public_key) == 2
    with pytest.raises(ProtocolError):
        member_index(identity, MALLORY.public_key)


def test_multi_public_key_bytes_layout() -> None:
    identity = derive_identity(KEYS, 2)
    data = multi_public_key_bytes(identity.member_set)
    assert data == b"".join(KEYS) + b"\x02"
    assert member_set_from_bytes(data) == identity.member_set


def test_verify_address() -> None:
    identity = derive_identity(KEYS, 2)
    assert verify_address(identity, identity.address)
    assert not verify_address(identity, bytes(32))
