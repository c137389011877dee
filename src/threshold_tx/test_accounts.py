"""Deterministic test members: independent Ed25519 keypairs from fixed seeds."""

from __future__ import annotations

from .aggregator import aggregate, bind_signature
from .crypto.keys import Keypair
from .encoding import signing_message
from .identity import derive_identity
from .signer import sign_envelope
from .types import SignedTransaction, ThresholdIdentity, TransactionEnvelope


def _seeded(seed_byte: int) -> Keypair:
    return Keypair.from_private_bytes(bytes([seed_byte]) * 32)


# Named members; each seed byte fills the whole 32-byte private key.
ALICE = _seeded(0x01)
BOB = _seeded(0x02)
CAROL = _seeded(0x03)
DAVE = _seeded(0x04)
MALLORY = _seeded(0x66)

MEMBERS = (ALICE, BOB, CAROL)

# public key -> keypair
KEYPAIRS: dict[bytes, Keypair] = {kp.public_key: kp for kp in (ALICE, BOB, CAROL, DAVE, MALLORY)}


def default_identity(threshold: int = 2) -> ThresholdIdentity:
    """ALICE, BOB, CAROL in that order."""
    return derive_identity([kp.public_key for kp in MEMBERS], threshold)


def sign_with(
    identity: ThresholdIdentity, envelope: TransactionEnvelope, *signers: Keypair
) -> SignedTransaction:
    """Sign with the given test members and bind the aggregated signature."""
    partials = [sign_envelope(kp, identity, envelope) for kp in signers]
    aggregated = aggregate(identity, signing_message(envelope), partials)
    return bind_signature(identity, envelope, aggregated)


# Shared scenario values for tests and generated vectors.
NOW = 1_700_000_000
RECIPIENT = bytes([0xAB]) * 32
INITIAL_BALANCE = 10_000_000
