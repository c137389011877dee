"""Threshold identity derivation.

The shared account address is a pure function of the ordered member keys and
the threshold, so every party can recompute it offline before funding it:

    address = SHA3-256(pubkey_0 || .. || pubkey_n-1 || threshold || 0x01)
"""

from __future__ import annotations

from typing import Iterable

from .config import MAX_MEMBERS, MIN_THRESHOLD, PUBLIC_KEY_LENGTH
from .crypto.hash_algorithms import threshold_address_hash
from .encoding import decode_multi_public_key, encode_multi_public_key
from .errors import ErrorCode, ProtocolError
from .types import MemberSet, ThresholdIdentity


def _invalid(message: str) -> ProtocolError:
    return ProtocolError(ErrorCode.INVALID_MEMBER_SET, message)


def validate_member_set(member_set: MemberSet) -> None:
    keys = member_set.public_keys
    threshold = member_set.threshold

    if len(keys) == 0:
        raise _invalid("member set must not be empty")
    if len(keys) > MAX_MEMBERS:
        raise _invalid(f"member set exceeds {MAX_MEMBERS} keys")
    if threshold < MIN_THRESHOLD:
        raise _invalid("threshold must be > 0")
    if threshold > len(keys):
        raise _invalid("threshold exceeds member count")

    seen: set[bytes] = set()
    for pk in keys:
        if not isinstance(pk, (bytes, bytearray)) or len(pk) != PUBLIC_KEY_LENGTH:
            raise _invalid(f"public keys must be {PUBLIC_KEY_LENGTH} bytes")
        if bytes(pk) in seen:
            raise _invalid("duplicate member public key")
        seen.add(bytes(pk))


def new_member_set(public_keys: Iterable[bytes], threshold: int) -> MemberSet:
    member_set = MemberSet(public_keys=tuple(bytes(pk) for pk in public_keys), threshold=threshold)
    validate_member_set(member_set)
    return member_set


def derive_address(member_set: MemberSet) -> bytes:
    validate_member_set(member_set)
    return threshold_address_hash(list(member_set.public_keys), member_set.threshold)


def derive_identity(public_keys: Iterable[bytes], threshold: int) -> ThresholdIdentity:
    member_set = new_member_set(public_keys, threshold)
    return ThresholdIdentity(member_set=member_set, address=derive_address(member_set))


def multi_public_key_bytes(member_set: MemberSet) -> bytes:
    validate_member_set(member_set)
    return encode_multi_public_key(member_set)


def member_set_from_bytes(data: bytes) -> MemberSet:
    try:
        member_set = decode_multi_public_key(data)
    except ProtocolError as exc:
        raise _invalid(exc.message) from exc
    validate_member_set(member_set)
    return member_set


def member_index(identity: ThresholdIdentity, public_key: bytes) -> int:
    try:
        return identity.member_set.public_keys.index(bytes(public_key))
    except ValueError:
        raise _invalid("public key is not a member") from None


def verify_address(identity: ThresholdIdentity, address: bytes) -> bool:
    """Recompute the address from the member set and compare."""
    return derive_address(identity.member_set) == bytes(address) == identity.address
