"""Single-party Ed25519 keypairs (backed by PyNaCl)."""

from __future__ import annotations

from dataclasses import dataclass, field

from nacl.exceptions import CryptoError
from nacl.signing import SigningKey, VerifyKey

from ..config import PRIVATE_KEY_LENGTH, PUBLIC_KEY_LENGTH, SIGNATURE_LENGTH
from ..errors import ErrorCode, ProtocolError


def _strip_hex(value: str) -> str:
    return value[2:] if value.startswith(("0x", "0X")) else value


@dataclass(frozen=True)
class Keypair:
    """An independently generated signing identity.

    The private key stays inside this object: it is excluded from repr and
    equality, and nothing in the protocol serializes it to shared state.
    """

    public_key: bytes
    _signing_key: SigningKey = field(repr=False, compare=False)

    @classmethod
    def generate(cls) -> "Keypair":
        return cls._from_signing_key(SigningKey.generate())

    @classmethod
    def from_private_bytes(cls, private_key: bytes) -> "Keypair":
        if len(private_key) != PRIVATE_KEY_LENGTH:
            raise ProtocolError(
                ErrorCode.INVALID_FORMAT, f"private key must be {PRIVATE_KEY_LENGTH} bytes"
            )
        return cls._from_signing_key(SigningKey(bytes(private_key)))

    @classmethod
    def from_hex(cls, value: str) -> "Keypair":
        try:
            raw = bytes.fromhex(_strip_hex(value.strip()))
        except ValueError as exc:
            raise ProtocolError(ErrorCode.INVALID_FORMAT, "private key is not hex") from exc
        return cls.from_private_bytes(raw)

    @classmethod
    def _from_signing_key(cls, key: SigningKey) -> "Keypair":
        return cls(public_key=bytes(key.verify_key), _signing_key=key)

    def private_key_bytes(self) -> bytes:
        return bytes(self._signing_key)

    def to_hex(self) -> str:
        return "0x" + self.private_key_bytes().hex()

    def sign(self, message: bytes) -> bytes:
        try:
            signature = self._signing_key.sign(message).signature
        except (CryptoError, TypeError, ValueError) as exc:
            raise ProtocolError(ErrorCode.SIGNING_FAILURE, f"ed25519 signing failed: {exc}") from exc
        if len(signature) != SIGNATURE_LENGTH:
            raise ProtocolError(ErrorCode.SIGNING_FAILURE, "ed25519 signature has wrong length")
        return bytes(signature)


def verify_signature(public_key: bytes, message: bytes, signature: bytes) -> bool:
    if len(public_key) != PUBLIC_KEY_LENGTH or len(signature) != SIGNATURE_LENGTH:
        return False
    try:
        VerifyKey(bytes(public_key)).verify(bytes(message), bytes(signature))
    except (CryptoError, TypeError, ValueError):
        return False
    return True
