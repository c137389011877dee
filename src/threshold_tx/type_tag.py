"""Type descriptors for action type arguments.

Parses the textual form used by the ledger (`u64`, `vector<u8>`,
`0x1::aptos_coin::AptosCoin`, `0x1::coin::CoinStore<0x1::aptos_coin::AptosCoin>`)
into `TypeTag` values. Canonical encoding lives in `encoding.py`.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import IntEnum
from typing import Optional

from .address import format_short, parse_address
from .config import MAX_TYPE_TAG_DEPTH
from .errors import ErrorCode, ProtocolError


class TypeTagKind(IntEnum):
    BOOL = 0
    U8 = 1
    U64 = 2
    U128 = 3
    ADDRESS = 4
    SIGNER = 5
    VECTOR = 6
    STRUCT = 7
    U16 = 8
    U32 = 9
    U256 = 10


PRIMITIVES: dict[str, TypeTagKind] = {
    "bool": TypeTagKind.BOOL,
    "u8": TypeTagKind.U8,
    "u16": TypeTagKind.U16,
    "u32": TypeTagKind.U32,
    "u64": TypeTagKind.U64,
    "u128": TypeTagKind.U128,
    "u256": TypeTagKind.U256,
    "address": TypeTagKind.ADDRESS,
    "signer": TypeTagKind.SIGNER,
}

_PRIMITIVE_NAMES = {kind: name for name, kind in PRIMITIVES.items()}

IDENTIFIER_RE = re.compile(r"^(?:[a-zA-Z][a-zA-Z0-9_]*|_[a-zA-Z0-9_]+)$")
_TOKEN_RE = re.compile(r"\s*(::|<|>|,|[A-Za-z0-9_]+)")


def is_valid_identifier(name: str) -> bool:
    return bool(IDENTIFIER_RE.match(name))


@dataclass(frozen=True)
class StructTag:
    address: bytes
    module: str
    name: str
    type_args: tuple["TypeTag", ...] = ()


@dataclass(frozen=True)
class TypeTag:
    kind: TypeTagKind
    element: Optional["TypeTag"] = None
    struct: Optional[StructTag] = None

    @classmethod
    def from_str(cls, value: str) -> "TypeTag":
        return parse_type_tag(value)

    def __str__(self) -> str:
        return format_type_tag(self)


def _tokenize(value: str) -> list[str]:
    tokens = []
    pos = 0
    while pos < len(value):
        if value[pos:].strip() == "":
            break
        m = _TOKEN_RE.match(value, pos)
        if m is None:
            raise ProtocolError(ErrorCode.INVALID_TYPE_TAG, f"unexpected character in {value!r}")
        tokens.append(m.group(1))
        pos = m.end()
    return tokens


class _Parser:
    def __init__(self, source: str):
        self.source = source
        self.tokens = _tokenize(source)
        self.pos = 0

    def _fail(self, msg: str) -> ProtocolError:
        return ProtocolError(ErrorCode.INVALID_TYPE_TAG, f"{msg} in {self.source!r}")

    def peek(self) -> Optional[str]:
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def next(self) -> str:
        tok = self.peek()
        if tok is None:
            raise self._fail("unexpected end of type")
        self.pos += 1
        return tok

    def expect(self, tok: str) -> None:
        got = self.next()
        if got != tok:
            raise self._fail(f"expected {tok!r}, got {got!r}")

    def identifier(self) -> str:
        tok = self.next()
        if not is_valid_identifier(tok):
            raise self._fail(f"invalid identifier {tok!r}")
        return tok

    def parse_all(self) -> TypeTag:
        tag = self.parse(0)
        if self.peek() is not None:
            raise self._fail(f"trailing token {self.peek()!r}")
        return tag

    def parse(self, depth: int) -> TypeTag:
        if depth > MAX_TYPE_TAG_DEPTH:
            raise self._fail("type nesting too deep")
        tok = self.next()
        if tok in PRIMITIVES:
            return TypeTag(PRIMITIVES[tok])
        if tok == "vector":
            self.expect("<")
            element = self.parse(depth + 1)
            self.expect(">")
            return TypeTag(TypeTagKind.VECTOR, element=element)
        if tok.startswith(("0x", "0X")):
            try:
                address = parse_address(tok)
            except ProtocolError as exc:
                raise self._fail(f"invalid address {tok!r}") from exc
            self.expect("::")
            module = self.identifier()
            self.expect("::")
            name = self.identifier()
            type_args: list[TypeTag] = []
            if self.peek() == "<":
                self.next()
                type_args.append(self.parse(depth + 1))
                while self.peek() == ",":
                    self.next()
                    type_args.append(self.parse(depth + 1))
                self.expect(">")
            return TypeTag(
                TypeTagKind.STRUCT,
                struct=StructTag(address, module, name, tuple(type_args)),
            )
        raise self._fail(f"unknown type {tok!r}")


def parse_type_tag(value: str) -> TypeTag:
    return _Parser(value).parse_all()


def format_type_tag(tag: TypeTag) -> str:
    if tag.kind == TypeTagKind.VECTOR:
        return f"vector<{format_type_tag(tag.element)}>"
    if tag.kind == TypeTagKind.STRUCT:
        s = tag.struct
        base = f"{format_short(s.address)}::{s.module}::{s.name}"
        if s.type_args:
            base += "<" + ", ".join(format_type_tag(t) for t in s.type_args) + ">"
        return base
    return _PRIMITIVE_NAMES[tag.kind]
