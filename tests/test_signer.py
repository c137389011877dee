"""Partial signing by individual members."""

from __future__ import annotations

from dataclasses import replace

import pytest
from nacl.exceptions import BadSignatureError
from nacl.signing import VerifyKey

from threshold_tx.crypto.hash_algorithms import RAW_TRANSACTION_PREFIX
from threshold_tx.crypto.keys import verify_signature
from threshold_tx.encoding import canonical_hash, signing_message
from threshold_tx.errors import ErrorCode, ProtocolError
from threshold_tx.signer import PartialSigner, sign_challenge, sign_envelope, verify_partial
from threshold_tx.test_accounts import ALICE, BOB, CAROL, MALLORY


def test_partial_signature_verifies(identity, make_envelope) -> None:
    env = make_envelope()
    partial = sign_envelope(BOB, identity, env)
    assert partial.member_index == 1
    assert verify_signature(BOB.public_key, signing_message(env), partial.signature)
    assert verify_partial(identity, partial, signing_message(env))


def test_partial_does_not_transfer_to_other_envelope(identity, make_envelope) -> None:
    partial = sign_envelope(ALICE, identity, make_envelope(sequence_number=0))
    other = make_envelope(sequence_number=1)
    assert not verify_partial(identity, partial, signing_message(other))


def test_non_member_cannot_sign(identity, make_envelope) -> None:
    with pytest.raises(ProtocolError) as exc:
        sign_envelope(MALLORY, identity, make_envelope())
    assert exc.value.code == ErrorCode.SIGNING_FAILURE
    with pytest.raises(ProtocolError):
        PartialSigner(MALLORY, identity)


def test_envelope_for_other_sender_is_refused(identity, make_envelope) -> None:
    env = make_envelope()
    with pytest.raises(ProtocolError) as exc:
        sign_envelope(ALICE, identity, replace(env, sender=bytes(32)))
    assert exc.value.code == ErrorCode.SIGNING_FAILURE
    payload = replace(env.payload, multisig_address=bytes(32))
    with pytest.raises(ProtocolError):
        sign_envelope(ALICE, identity, replace(env, payload=payload))


def test_partial_signer(identity, make_envelope) -> None:
    signer = PartialSigner(CAROL, identity)
    assert signer.member_index == 2
    assert signer.public_key == CAROL.public_key
    env = make_envelope()
    assert signer.sign(env) == sign_envelope(CAROL, identity, env)


def test_sign_challenge_requires_signing_message(make_envelope) -> None:
    for challenge in (b"short", canonical_hash(make_envelope()), RAW_TRANSACTION_PREFIX):
        with pytest.raises(ProtocolError) as exc:
            sign_challenge(ALICE, 0, challenge)
        assert exc.value.code == ErrorCode.SIGNING_FAILURE


def test_partial_signs_message_not_digest(identity, make_envelope) -> None:
    env = make_envelope()
    partial = sign_envelope(ALICE, identity, env)
    VerifyKey(ALICE.public_key).verify(signing_message(env), partial.signature)
    with pytest.raises(BadSignatureError):
        VerifyKey(ALICE.public_key).verify(canonical_hash(env), partial.signature)


def test_out_of_range_index_does_not_verify(identity, make_envelope) -> None:
    challenge = signing_message(make_envelope())
    partial = sign_challenge(ALICE, 5, challenge)
    assert not verify_partial(identity, partial, challenge)
