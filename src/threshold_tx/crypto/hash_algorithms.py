"""Hash algorithm assignments for the threshold-tx protocol."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass

from blake3 import blake3

from ..config import MULTI_ED25519_SCHEME, RAW_TRANSACTION_SALT, TRANSACTION_SALT


HASH_SIZE = 32


@dataclass(frozen=True)
class HashAssignment:
    purpose: str
    algorithm: str
    output_size: int
    input_spec: str


ASSIGNMENTS = [
    HashAssignment(
        "threshold_address", "SHA3-256", 32, "pubkey_0 || .. || pubkey_n-1 || threshold || 0x01"
    ),
    HashAssignment(
        "envelope_hash", "SHA3-256", 32, "sha3(raw_tx_salt) || canonical raw transaction"
    ),
    HashAssignment(
        "txid", "SHA3-256", 32, "sha3(tx_salt) || 0x00 || canonical signed transaction"
    ),
    HashAssignment("state_digest", "BLAKE3", 32, "canonical ledger state bytes"),
]


def sha3_256(data: bytes) -> bytes:
    return hashlib.sha3_256(data).digest()


def blake3_hash(data: bytes) -> bytes:
    return blake3(data).digest()


def domain_hash(data: bytes, scheme: int) -> bytes:
    """SHA3-256 over `data` followed by a one-byte scheme tag."""
    hasher = hashlib.sha3_256()
    hasher.update(data)
    hasher.update(bytes([scheme]))
    return hasher.digest()


def threshold_address_hash(public_keys: list[bytes], threshold: int) -> bytes:
    return domain_hash(b"".join(public_keys) + bytes([threshold]), MULTI_ED25519_SCHEME)


def salt_prefix(salt: bytes) -> bytes:
    return sha3_256(salt)


RAW_TRANSACTION_PREFIX = salt_prefix(RAW_TRANSACTION_SALT)
TRANSACTION_PREFIX = salt_prefix(TRANSACTION_SALT)


def envelope_hash(canonical_bytes: bytes) -> bytes:
    return sha3_256(RAW_TRANSACTION_PREFIX + canonical_bytes)


def txid(variant: int, serialized_signed_tx: bytes) -> bytes:
    return sha3_256(TRANSACTION_PREFIX + bytes([variant]) + serialized_signed_tx)
