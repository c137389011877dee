"""Account address parsing and formatting."""

from __future__ import annotations

from .config import ADDRESS_LENGTH
from .errors import ErrorCode, ProtocolError


def parse_address(value: str) -> bytes:
    """Parse `0x`-prefixed hex, left-padding short forms such as `0x1`."""
    v = value.strip()
    if v.startswith(("0x", "0X")):
        v = v[2:]
    if not v or len(v) > ADDRESS_LENGTH * 2:
        raise ProtocolError(ErrorCode.INVALID_FORMAT, f"invalid address: {value!r}")
    if len(v) % 2:
        v = "0" + v
    try:
        raw = bytes.fromhex(v)
    except ValueError as exc:
        raise ProtocolError(ErrorCode.INVALID_FORMAT, f"invalid address: {value!r}") from exc
    return raw.rjust(ADDRESS_LENGTH, b"\x00")


def format_address(address: bytes) -> str:
    return "0x" + address.hex()


def format_short(address: bytes) -> str:
    """Short form used inside type tags (`0x1` rather than 64 hex digits)."""
    stripped = address.hex().lstrip("0")
    return "0x" + (stripped or "0")
