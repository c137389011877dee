"""Aggregation of partial signatures into one threshold signature."""

from __future__ import annotations

import logging
from typing import Iterable

from .crypto.keys import verify_signature
from .encoding import decode_multi_signature, encode_multi_signature, signing_message
from .errors import ErrorCode, ProtocolError
from .identity import derive_address
from .signer import verify_partial
from .types import (
    AggregatedSignature,
    MemberSet,
    PartialSignature,
    SignedTransaction,
    ThresholdIdentity,
    TransactionEnvelope,
)

logger = logging.getLogger(__name__)


def aggregate(
    identity: ThresholdIdentity,
    challenge: bytes,
    partials: Iterable[PartialSignature],
) -> AggregatedSignature:
    """Combine every valid partial signature, in member order.

    Partials that are out of range or do not verify are dropped. Duplicate
    indices collapse to the lowest valid signature bytes, so the result does
    not depend on arrival order.
    """
    threshold = identity.member_set.threshold
    valid: dict[int, bytes] = {}
    for partial in partials:
        signature = bytes(partial.signature)
        current = valid.get(partial.member_index)
        if current is not None and current <= signature:
            continue
        if verify_partial(identity, partial, challenge):
            valid[partial.member_index] = signature
        else:
            logger.debug("excluding invalid partial signature for index %s", partial.member_index)

    if len(valid) < threshold:
        raise ProtocolError(
            ErrorCode.INSUFFICIENT_SIGNATURES,
            f"{len(valid)} valid signatures, threshold is {threshold}",
        )

    indices = tuple(sorted(valid))
    return AggregatedSignature(bitmap=indices, signatures=tuple(valid[i] for i in indices))


def verify_aggregated(
    member_set: MemberSet, aggregated: AggregatedSignature, challenge: bytes
) -> bool:
    """Check a threshold signature with public data only."""
    keys = member_set.public_keys
    if len(aggregated.bitmap) != len(aggregated.signatures):
        return False
    if len(aggregated.bitmap) < member_set.threshold:
        return False
    if list(aggregated.bitmap) != sorted(set(aggregated.bitmap)):
        return False
    for index, signature in zip(aggregated.bitmap, aggregated.signatures):
        if not (0 <= index < len(keys)):
            return False
        if not verify_signature(keys[index], challenge, signature):
            return False
    return True


def aggregated_to_bytes(aggregated: AggregatedSignature) -> bytes:
    return encode_multi_signature(aggregated)


def aggregated_from_bytes(data: bytes) -> AggregatedSignature:
    return decode_multi_signature(data)


def bind_signature(
    identity: ThresholdIdentity, envelope: TransactionEnvelope, aggregated: AggregatedSignature
) -> SignedTransaction:
    """Attach a verified threshold signature to its envelope."""
    if not verify_aggregated(identity.member_set, aggregated, signing_message(envelope)):
        raise ProtocolError(
            ErrorCode.INSUFFICIENT_SIGNATURES, "aggregated signature does not authorize envelope"
        )
    return SignedTransaction(envelope=envelope, member_set=identity.member_set, signature=aggregated)


def verify_signed_transaction(signed: SignedTransaction) -> bool:
    """Ledger-side check: embedded member set owns the sender and signs the envelope."""
    try:
        address = derive_address(signed.member_set)
    except ProtocolError:
        return False
    if address != signed.envelope.sender:
        return False
    return verify_aggregated(signed.member_set, signed.signature, signing_message(signed.envelope))
