"""End-to-end: 2-of-3 identity, independent signers, submission, confirmation."""

from __future__ import annotations

import asyncio

import pytest

from threshold_tx.aggregator import aggregate, bind_signature
from threshold_tx.crypto.keys import Keypair
from threshold_tx.encoding import decode_signed_transaction, encode_signed_transaction, signing_message
from threshold_tx.errors import ErrorCode, ProtocolError
from threshold_tx.identity import derive_identity
from threshold_tx.ledger.memory import InMemoryLedger
from threshold_tx.settings import GasConfig, TrackerConfig
from threshold_tx.signer import PartialSigner, sign_challenge
from threshold_tx.submission import SubmissionTracker
from threshold_tx.transaction import build_envelope, coin_transfer_action
from threshold_tx.types import TxStatus

TRACKER = TrackerConfig(poll_interval=0.01, max_poll_interval=0.05, timeout=2.0)


def test_two_of_three_transfer() -> None:
    clock = lambda: 1_000_000  # noqa: E731
    a, b, c = Keypair.generate(), Keypair.generate(), Keypair.generate()
    identity = derive_identity([a.public_key, b.public_key, c.public_key], 2)
    recipient = Keypair.generate().public_key

    async def run():
        ledger = InMemoryLedger(clock=clock)
        await ledger.fund(identity.address, 1_000_000)
        network_id = await ledger.get_network_id()
        env = build_envelope(
            identity,
            coin_transfer_action(recipient, 1_000),
            ledger.sequence_number(identity.address),
            network_id,
            GasConfig(),
            now=clock(),
        )

        # each member recomputes the challenge from the envelope it is shown
        partials = [PartialSigner(kp, identity).sign(env) for kp in (c, a)]
        aggregated = aggregate(identity, signing_message(env), partials)
        assert aggregated.bitmap == (0, 2)
        signed = bind_signature(identity, env, aggregated)

        # only public data crosses the wire
        assert decode_signed_transaction(encode_signed_transaction(signed)) == signed

        tracker = SubmissionTracker(ledger, TRACKER, clock=clock)
        submitted = await tracker.submit(signed)
        assert submitted.status == TxStatus.PENDING
        final = await tracker.wait_for_transaction(submitted)
        assert final.status == TxStatus.COMMITTED
        assert ledger.balance(recipient) == 1_000

        again = await tracker.submit(signed)
        assert again.status == TxStatus.REJECTED
        assert again.reason == "SEQUENCE_NUMBER_TOO_OLD"
        status = await ledger.get_status(submitted.transaction_hash)
        assert status.status == TxStatus.COMMITTED

    asyncio.run(run())


def test_one_signature_is_not_enough() -> None:
    a, b, c = Keypair.generate(), Keypair.generate(), Keypair.generate()
    identity = derive_identity([a.public_key, b.public_key, c.public_key], 2)
    env = build_envelope(identity, coin_transfer_action(bytes(32), 1), 0, 4, now=0)
    with pytest.raises(ProtocolError) as exc:
        aggregate(identity, signing_message(env), [PartialSigner(b, identity).sign(env)])
    assert exc.value.code == ErrorCode.INSUFFICIENT_SIGNATURES


def test_outsider_partial_does_not_count() -> None:
    a, b, c, m = (Keypair.generate() for _ in range(4))
    identity = derive_identity([a.public_key, b.public_key, c.public_key], 2)
    env = build_envelope(identity, coin_transfer_action(bytes(32), 1), 0, 4, now=0)
    challenge = signing_message(env)
    # m signs the right challenge, claiming b's slot
    forged = sign_challenge(m, 1, challenge)
    with pytest.raises(ProtocolError):
        aggregate(identity, challenge, [forged, PartialSigner(a, identity).sign(env)])
