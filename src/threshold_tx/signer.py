"""Per-member partial signing."""

from __future__ import annotations

from .crypto.hash_algorithms import RAW_TRANSACTION_PREFIX
from .crypto.keys import Keypair, verify_signature
from .encoding import signing_message
from .errors import ErrorCode, ProtocolError
from .types import PartialSignature, ThresholdIdentity, TransactionEnvelope


def sign_challenge(keypair: Keypair, member_index: int, challenge: bytes) -> PartialSignature:
    """Sign an already built signing message (salt prefix + canonical envelope).

    Only for callers that built `challenge` themselves; a member shown a
    transaction by someone else should go through `sign_envelope`.
    """
    if len(challenge) <= len(RAW_TRANSACTION_PREFIX) or not challenge.startswith(RAW_TRANSACTION_PREFIX):
        raise ProtocolError(ErrorCode.SIGNING_FAILURE, "challenge is not a raw transaction signing message")
    return PartialSignature(member_index=member_index, signature=keypair.sign(challenge))


def sign_envelope(
    keypair: Keypair, identity: ThresholdIdentity, envelope: TransactionEnvelope
) -> PartialSignature:
    """Rebuild the signing message from `envelope` and sign it as a member of `identity`."""
    if envelope.sender != identity.address:
        raise ProtocolError(ErrorCode.SIGNING_FAILURE, "envelope sender is not the threshold account")
    if envelope.payload.multisig_address != identity.address:
        raise ProtocolError(
            ErrorCode.SIGNING_FAILURE, "payload is not authorized for the threshold account"
        )
    try:
        index = identity.member_set.public_keys.index(keypair.public_key)
    except ValueError:
        raise ProtocolError(ErrorCode.SIGNING_FAILURE, "signer is not a member") from None
    return sign_challenge(keypair, index, signing_message(envelope))


def verify_partial(
    identity: ThresholdIdentity, partial: PartialSignature, challenge: bytes
) -> bool:
    keys = identity.member_set.public_keys
    if not (0 <= partial.member_index < len(keys)):
        return False
    return verify_signature(keys[partial.member_index], challenge, partial.signature)


class PartialSigner:
    """One member's signing boundary; the keypair never leaves it."""

    def __init__(self, keypair: Keypair, identity: ThresholdIdentity):
        self._keypair = keypair
        self.identity = identity
        if keypair.public_key not in identity.member_set.public_keys:
            raise ProtocolError(ErrorCode.SIGNING_FAILURE, "signer is not a member")
        self.member_index = identity.member_set.public_keys.index(keypair.public_key)

    @property
    def public_key(self) -> bytes:
        return self._keypair.public_key

    def sign(self, envelope: TransactionEnvelope) -> PartialSignature:
        return sign_envelope(self._keypair, self.identity, envelope)
