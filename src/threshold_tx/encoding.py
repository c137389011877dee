"""Canonical wire encoding (BCS-style) for threshold transactions.

Integers are little-endian and fixed width; every variable-length field is
preceded by a ULEB128 length. Field order of the raw transaction:

[sender:32][sequence_number:u64][payload:var][max_gas:u64][gas_price:u64][expiration:u64][network_id:u8]

payload = [uleb(3) multisig][multisig_address:32][option:u8][uleb(0) entry function]
          [module_address:32][module:str][function:str][vec<type_tag>][vec<vec<u8>>]
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from .config import (
    ADDRESS_LENGTH,
    AUTHENTICATOR_MULTI_ED25519,
    BITMAP_NUM_OF_BYTES,
    MAX_ARGUMENT_SIZE,
    MAX_IDENTIFIER_LENGTH,
    MAX_MEMBERS,
    MAX_SEQUENCE_LENGTH,
    MAX_TYPE_TAG_DEPTH,
    MULTISIG_PAYLOAD_ENTRY_FUNCTION,
    PAYLOAD_MULTISIG,
    PUBLIC_KEY_LENGTH,
    SIGNATURE_LENGTH,
    TRANSACTION_VARIANT_USER,
    U8_MAX,
    U64_MAX,
)
from .crypto.hash_algorithms import RAW_TRANSACTION_PREFIX, envelope_hash, txid
from .errors import ErrorCode, ProtocolError
from .type_tag import StructTag, TypeTag, TypeTagKind, is_valid_identifier
from .types import (
    Action,
    AggregatedSignature,
    MemberSet,
    ModuleId,
    MultisigPayload,
    SignedTransaction,
    TransactionEnvelope,
)

U32_MAX = (1 << 32) - 1
U128_MAX = (1 << 128) - 1


def _overflow(message: str) -> ProtocolError:
    return ProtocolError(ErrorCode.ENCODING_OVERFLOW, message)


@dataclass
class Writer:
    buf: bytearray

    def _write_uint(self, v: int, size: int, limit: int) -> None:
        v = int(v)
        if not (0 <= v <= limit):
            raise _overflow(f"value {v} does not fit u{size * 8}")
        self.buf.extend(v.to_bytes(size, "little", signed=False))

    def write_u8(self, v: int) -> None:
        self._write_uint(v, 1, U8_MAX)

    def write_u64(self, v: int) -> None:
        self._write_uint(v, 8, U64_MAX)

    def write_u128(self, v: int) -> None:
        self._write_uint(v, 16, U128_MAX)

    def write_uleb128(self, v: int) -> None:
        v = int(v)
        if not (0 <= v <= U32_MAX):
            raise _overflow(f"uleb128 value {v} out of range")
        while v >= 0x80:
            self.buf.append((v & 0x7F) | 0x80)
            v >>= 7
        self.buf.append(v)

    def write_len(self, n: int) -> None:
        if n > MAX_SEQUENCE_LENGTH:
            raise _overflow("sequence length exceeds maximum")
        self.write_uleb128(n)

    def write_bytes(self, b: bytes) -> None:
        self.buf.extend(b)

    def write_vec_u8(self, b: bytes) -> None:
        self.write_len(len(b))
        self.buf.extend(b)

    def write_bool(self, v: bool) -> None:
        self.write_u8(1 if v else 0)

    def write_str(self, s: str) -> None:
        self.write_vec_u8(s.encode())


class Reader:
    def __init__(self, data: bytes):
        self.data = bytes(data)
        self.pos = 0

    def _take(self, n: int) -> bytes:
        if self.pos + n > len(self.data):
            raise ProtocolError(ErrorCode.INVALID_FORMAT, "unexpected end of input")
        chunk = self.data[self.pos:self.pos + n]
        self.pos += n
        return chunk

    def read_u8(self) -> int:
        return self._take(1)[0]

    def read_u64(self) -> int:
        return int.from_bytes(self._take(8), "little")

    def read_uleb128(self) -> int:
        value = 0
        shift = 0
        while True:
            byte = self.read_u8()
            value |= (byte & 0x7F) << shift
            if not byte & 0x80:
                if byte == 0 and shift:
                    raise ProtocolError(ErrorCode.INVALID_FORMAT, "non-canonical uleb128")
                break
            shift += 7
            if shift > 28:
                raise ProtocolError(ErrorCode.INVALID_FORMAT, "uleb128 too long")
        if value > U32_MAX:
            raise ProtocolError(ErrorCode.INVALID_FORMAT, "uleb128 out of range")
        return value

    def read_bool(self) -> bool:
        v = self.read_u8()
        if v not in (0, 1):
            raise ProtocolError(ErrorCode.INVALID_FORMAT, "invalid bool")
        return v == 1

    def read_vec_u8(self) -> bytes:
        return self._take(self.read_uleb128())

    def read_str(self) -> str:
        try:
            return self.read_vec_u8().decode()
        except UnicodeDecodeError as exc:
            raise ProtocolError(ErrorCode.INVALID_FORMAT, "invalid utf-8 string") from exc

    def read_address(self) -> bytes:
        return self._take(ADDRESS_LENGTH)

    def finish(self) -> None:
        if self.pos != len(self.data):
            raise ProtocolError(ErrorCode.INVALID_FORMAT, "trailing bytes after value")


def _expect_len(name: str, value: bytes, size: int) -> None:
    if len(value) != size:
        raise ProtocolError(ErrorCode.INVALID_FORMAT, f"{name} must be {size} bytes")


def _write_address(w: Writer, value: bytes) -> None:
    _expect_len("address", value, ADDRESS_LENGTH)
    w.write_bytes(value)


def _write_identifier(w: Writer, name: str) -> None:
    data = name.encode()
    if len(data) > MAX_IDENTIFIER_LENGTH:
        raise _overflow(f"identifier longer than {MAX_IDENTIFIER_LENGTH} bytes")
    if not is_valid_identifier(name):
        raise ProtocolError(ErrorCode.INVALID_FORMAT, f"invalid identifier {name!r}")
    w.write_vec_u8(data)


def _read_identifier(r: Reader) -> str:
    name = r.read_str()
    if not is_valid_identifier(name):
        raise ProtocolError(ErrorCode.INVALID_FORMAT, f"invalid identifier {name!r}")
    return name


def _write_vec(w: Writer, items, write_item: Callable) -> None:
    w.write_len(len(items))
    for item in items:
        write_item(w, item)


def _read_vec(r: Reader, read_item: Callable) -> list:
    return [read_item(r) for _ in range(r.read_uleb128())]


def _write_argument(w: Writer, arg: bytes) -> None:
    if not isinstance(arg, (bytes, bytearray)):
        raise ProtocolError(ErrorCode.INVALID_FORMAT, "arguments must be pre-encoded bytes")
    if len(arg) > MAX_ARGUMENT_SIZE:
        raise _overflow(f"argument larger than {MAX_ARGUMENT_SIZE} bytes")
    w.write_vec_u8(bytes(arg))


# --- Type tags ---


def write_type_tag(w: Writer, tag: TypeTag, depth: int = 0) -> None:
    if depth > MAX_TYPE_TAG_DEPTH:
        raise _overflow("type tag nesting too deep")
    w.write_uleb128(int(tag.kind))
    if tag.kind == TypeTagKind.VECTOR:
        write_type_tag(w, tag.element, depth + 1)
    elif tag.kind == TypeTagKind.STRUCT:
        s = tag.struct
        _write_address(w, s.address)
        _write_identifier(w, s.module)
        _write_identifier(w, s.name)
        _write_vec(w, s.type_args, lambda ww, t: write_type_tag(ww, t, depth + 1))


def read_type_tag(r: Reader, depth: int = 0) -> TypeTag:
    if depth > MAX_TYPE_TAG_DEPTH:
        raise ProtocolError(ErrorCode.INVALID_FORMAT, "type tag nesting too deep")
    variant = r.read_uleb128()
    try:
        kind = TypeTagKind(variant)
    except ValueError as exc:
        raise ProtocolError(ErrorCode.INVALID_FORMAT, f"unknown type tag {variant}") from exc
    if kind == TypeTagKind.VECTOR:
        return TypeTag(kind, element=read_type_tag(r, depth + 1))
    if kind == TypeTagKind.STRUCT:
        address = r.read_address()
        module = _read_identifier(r)
        name = _read_identifier(r)
        type_args = tuple(_read_vec(r, lambda rr: read_type_tag(rr, depth + 1)))
        return TypeTag(kind, struct=StructTag(address, module, name, type_args))
    return TypeTag(kind)


# --- Actions / payload ---


def _write_entry_function(w: Writer, action: Action) -> None:
    _write_address(w, action.module.address)
    _write_identifier(w, action.module.name)
    _write_identifier(w, action.function)
    _write_vec(w, action.type_arguments, write_type_tag)
    _write_vec(w, action.arguments, _write_argument)


def _read_entry_function(r: Reader) -> Action:
    module = ModuleId(r.read_address(), _read_identifier(r))
    function = _read_identifier(r)
    type_arguments = tuple(_read_vec(r, read_type_tag))
    arguments = tuple(_read_vec(r, lambda rr: rr.read_vec_u8()))
    return Action(module, function, type_arguments, arguments)


def _write_payload(w: Writer, payload: MultisigPayload) -> None:
    w.write_uleb128(PAYLOAD_MULTISIG)
    _write_address(w, payload.multisig_address)
    if payload.action is None:
        w.write_bool(False)
        return
    w.write_bool(True)
    w.write_uleb128(MULTISIG_PAYLOAD_ENTRY_FUNCTION)
    _write_entry_function(w, payload.action)


def _read_payload(r: Reader) -> MultisigPayload:
    variant = r.read_uleb128()
    if variant != PAYLOAD_MULTISIG:
        raise ProtocolError(ErrorCode.INVALID_FORMAT, f"unsupported payload variant {variant}")
    multisig_address = r.read_address()
    if not r.read_bool():
        return MultisigPayload(multisig_address, None)
    inner = r.read_uleb128()
    if inner != MULTISIG_PAYLOAD_ENTRY_FUNCTION:
        raise ProtocolError(ErrorCode.INVALID_FORMAT, f"unsupported multisig payload {inner}")
    return MultisigPayload(multisig_address, _read_entry_function(r))


# --- Raw transaction ---


def _write_envelope(w: Writer, env: TransactionEnvelope) -> None:
    _write_address(w, env.sender)
    w.write_u64(env.sequence_number)
    _write_payload(w, env.payload)
    w.write_u64(env.max_gas_units)
    w.write_u64(env.gas_unit_price)
    w.write_u64(env.expiration_timestamp)
    w.write_u8(env.network_id)


def _read_envelope(r: Reader) -> TransactionEnvelope:
    sender = r.read_address()
    sequence_number = r.read_u64()
    payload = _read_payload(r)
    return TransactionEnvelope(
        sender=sender,
        sequence_number=sequence_number,
        payload=payload,
        max_gas_units=r.read_u64(),
        gas_unit_price=r.read_u64(),
        expiration_timestamp=r.read_u64(),
        network_id=r.read_u8(),
    )


def encode_envelope(env: TransactionEnvelope) -> bytes:
    """Canonical bytes of the unsigned transaction."""
    w = Writer(bytearray())
    _write_envelope(w, env)
    return bytes(w.buf)


def decode_envelope(data: bytes) -> TransactionEnvelope:
    r = Reader(data)
    env = _read_envelope(r)
    r.finish()
    return env


def signing_message(env: TransactionEnvelope) -> bytes:
    """The exact bytes every member signs: salt prefix followed by the canonical envelope."""
    return RAW_TRANSACTION_PREFIX + encode_envelope(env)


def canonical_hash(env: TransactionEnvelope) -> bytes:
    """32-byte identity of the unsigned envelope."""
    return envelope_hash(encode_envelope(env))


# --- Multi-key / multi-signature ---


def encode_multi_public_key(member_set: MemberSet) -> bytes:
    for pk in member_set.public_keys:
        _expect_len("public_key", pk, PUBLIC_KEY_LENGTH)
    if not (0 <= member_set.threshold <= U8_MAX):
        raise _overflow("threshold must fit u8")
    return b"".join(member_set.public_keys) + bytes([member_set.threshold])


def decode_multi_public_key(data: bytes) -> MemberSet:
    if len(data) < PUBLIC_KEY_LENGTH + 1 or (len(data) - 1) % PUBLIC_KEY_LENGTH:
        raise ProtocolError(ErrorCode.INVALID_FORMAT, "malformed multi public key")
    keys = tuple(
        data[i:i + PUBLIC_KEY_LENGTH] for i in range(0, len(data) - 1, PUBLIC_KEY_LENGTH)
    )
    return MemberSet(public_keys=keys, threshold=data[-1])


def encode_bitmap(indices) -> bytes:
    bitmap = bytearray(BITMAP_NUM_OF_BYTES)
    for index in indices:
        if not (0 <= index < MAX_MEMBERS):
            raise _overflow(f"bitmap index {index} out of range")
        bitmap[index // 8] |= 0x80 >> (index % 8)
    return bytes(bitmap)


def decode_bitmap(bitmap: bytes) -> tuple[int, ...]:
    _expect_len("bitmap", bitmap, BITMAP_NUM_OF_BYTES)
    return tuple(i for i in range(MAX_MEMBERS) if bitmap[i // 8] & (0x80 >> (i % 8)))


def encode_multi_signature(sig: AggregatedSignature) -> bytes:
    """[signature_0]..[signature_m][4-byte bitmap], signatures in member order."""
    if len(sig.bitmap) != len(sig.signatures):
        raise ProtocolError(ErrorCode.INVALID_FORMAT, "bitmap and signature count differ")
    for s in sig.signatures:
        _expect_len("signature", s, SIGNATURE_LENGTH)
    return sig.signature_bytes + encode_bitmap(sig.bitmap)


def decode_multi_signature(data: bytes) -> AggregatedSignature:
    if len(data) < BITMAP_NUM_OF_BYTES:
        raise ProtocolError(ErrorCode.INVALID_FORMAT, "malformed multi signature")
    body, bitmap = data[:-BITMAP_NUM_OF_BYTES], data[-BITMAP_NUM_OF_BYTES:]
    indices = decode_bitmap(bitmap)
    if len(body) != len(indices) * SIGNATURE_LENGTH:
        raise ProtocolError(ErrorCode.INVALID_FORMAT, "signature count does not match bitmap")
    signatures = tuple(
        body[i:i + SIGNATURE_LENGTH] for i in range(0, len(body), SIGNATURE_LENGTH)
    )
    return AggregatedSignature(bitmap=indices, signatures=signatures)


# --- Signed transaction ---


def encode_signed_transaction(signed: SignedTransaction) -> bytes:
    w = Writer(bytearray())
    _write_envelope(w, signed.envelope)
    w.write_uleb128(AUTHENTICATOR_MULTI_ED25519)
    w.write_vec_u8(encode_multi_public_key(signed.member_set))
    w.write_vec_u8(encode_multi_signature(signed.signature))
    return bytes(w.buf)


def decode_signed_transaction(data: bytes) -> SignedTransaction:
    r = Reader(data)
    envelope = _read_envelope(r)
    variant = r.read_uleb128()
    if variant != AUTHENTICATOR_MULTI_ED25519:
        raise ProtocolError(ErrorCode.INVALID_FORMAT, f"unsupported authenticator {variant}")
    member_set = decode_multi_public_key(r.read_vec_u8())
    signature = decode_multi_signature(r.read_vec_u8())
    r.finish()
    return SignedTransaction(envelope=envelope, member_set=member_set, signature=signature)


def transaction_hash(signed: SignedTransaction) -> bytes:
    return txid(TRANSACTION_VARIANT_USER, encode_signed_transaction(signed))


# --- Argument helpers (pre-encoding for Action.arguments) ---


def encode_u8(v: int) -> bytes:
    w = Writer(bytearray())
    w.write_u8(v)
    return bytes(w.buf)


def encode_u64(v: int) -> bytes:
    w = Writer(bytearray())
    w.write_u64(v)
    return bytes(w.buf)


def encode_u128(v: int) -> bytes:
    w = Writer(bytearray())
    w.write_u128(v)
    return bytes(w.buf)


def encode_bool(v: bool) -> bytes:
    w = Writer(bytearray())
    w.write_bool(v)
    return bytes(w.buf)


def encode_address(address: bytes) -> bytes:
    _expect_len("address", address, ADDRESS_LENGTH)
    return bytes(address)


def encode_bytes(value: bytes) -> bytes:
    w = Writer(bytearray())
    w.write_vec_u8(value)
    return bytes(w.buf)


def encode_string(value: str) -> bytes:
    w = Writer(bytearray())
    w.write_str(value)
    return bytes(w.buf)


def decode_u64(data: bytes) -> int:
    r = Reader(data)
    v = r.read_u64()
    r.finish()
    return v


def decode_address(data: bytes) -> bytes:
    r = Reader(data)
    v = r.read_address()
    r.finish()
    return v
